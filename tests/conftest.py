"""Shared test fixtures for the tagger test suite.

Every test gets its own in-memory SQLite database (StaticPool keeps one
connection alive for the whole test), a SqlTagStore over it, a scripted
prompts double standing in for the user's dialogs, and a Library.
"""

import os

# Use an in-memory database and readable logs before any tagit imports.
os.environ["TAGIT_DATABASE_URL"] = "sqlite://"
os.environ["TAGIT_LOG_FORMAT"] = "text"

from types import SimpleNamespace

import pytest

from tagit.database import init_db, make_engine
from tagit.library import Library
from tagit.services.folder_service import FolderService
from tagit.prompts import MutationPrompts, OrphanChoice
from tagit.store import SqlTagStore


class ScriptedPrompts(MutationPrompts):
    """Answers every confirmation from preset attributes and records the calls."""

    def __init__(self):
        self.retag_answer = True
        self.orphan_choice = OrphanChoice.CANCEL
        self.replacement = None
        self.calls = []

    def confirm_retag(self, parent, child, files):
        self.calls.append(("confirm_retag", parent.name, child.name, sorted(files)))
        return self.retag_answer

    def resolve_orphans(self, tag, files):
        self.calls.append(("resolve_orphans", tag.name, sorted(files)))
        return self.orphan_choice

    def select_replacement(self, root, tag):
        self.calls.append(("select_replacement", tag.name))
        return self.replacement


@pytest.fixture()
def engine():
    """Fresh in-memory database with every table created."""
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def store(engine):
    return SqlTagStore.from_engine(engine)


@pytest.fixture()
def prompts():
    return ScriptedPrompts()


@pytest.fixture()
def library(store, prompts):
    return Library(store, prompts=prompts, name="test-folder")


@pytest.fixture()
def root(library):
    return library.root


@pytest.fixture()
def reopen(store, prompts):
    """Open a second Library over the same database, with nothing fetched yet."""

    def _reopen():
        return Library(store, prompts=prompts, name="test-folder")

    return _reopen


@pytest.fixture()
def tree(library):
    """Root tags Animals (Cats, Dogs) and Places (Paris)."""
    animals = library.create_tag(None, "Animals")
    places = library.create_tag(None, "Places")
    return SimpleNamespace(
        animals=animals,
        dogs=library.create_tag(animals, "Dogs"),
        cats=library.create_tag(animals, "Cats"),
        places=places,
        paris=library.create_tag(places, "Paris"),
    )


@pytest.fixture()
def add_file(library):
    """Import a file tagged with the given nodes."""

    def _add_file(name, *tags, created=None):
        return library.files.import_file(name, tags, created=created)

    return _add_file


@pytest.fixture()
def registry():
    """Empty managed folder registry in its own in-memory database."""
    eng = make_engine("sqlite://")
    yield FolderService.from_engine(eng)
    eng.dispose()
