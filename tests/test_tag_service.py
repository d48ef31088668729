"""Unit tests for TagService: create, rename, reparent and delete protocols.

Covers name validation, leaf promotion (files follow a leaf that gains a
child), link bookkeeping on reparent, the cascading delete order and the
three ways of resolving orphaned files.
"""

import pytest

from tagit.exceptions import UserDeclinedError, ValidationError
from tagit.prompts import MutationPrompts, OrphanChoice
from tagit.tree.events import ChangeKind
from tagit.tree.tag_node import TagNode


def _names(nodes):
    return [n.name for n in nodes]


def _record_events(library):
    events = []
    library.subscribe(lambda e: events.append((e.kind, e.parent.name, e.child.name)))
    return events


class TestCreateTag:
    """Name validation and persistence of new tags."""

    def test_create_root_level_tag(self, library, store):
        node = library.create_tag(None, "Animals")
        assert node.id > 0
        assert node.parent is library.root
        assert store.fetch_root_tags() == [("Animals", node.id)]

    def test_create_child_persists_link(self, tree, store):
        assert store.fetch_child_tags(tree.animals.id) == [
            ("Cats", tree.cats.id), ("Dogs", tree.dogs.id),
        ]
        assert store.fetch_tag_lineage(tree.dogs.id) == [tree.animals.id, tree.dogs.id]

    def test_name_is_stripped(self, library):
        assert library.create_tag(None, "  Birds ").name == "Birds"

    def test_forbidden_characters_rejected(self, library):
        for name in ["a/b", "a\\b", 'say "hi"', "it's"]:
            with pytest.raises(ValidationError) as exc:
                library.create_tag(None, name)
            assert "slashes or quotes" in exc.value.message

    def test_empty_name_rejected(self, library):
        with pytest.raises(ValidationError):
            library.create_tag(None, "   ")

    def test_duplicate_sibling_rejected_ignoring_case(self, library, tree):
        with pytest.raises(ValidationError) as exc:
            library.create_tag(None, "animals")
        assert exc.value.details == {"field": "name"}
        with pytest.raises(ValidationError):
            library.create_tag(tree.animals, "DOGS")

    def test_same_name_allowed_under_other_parent(self, library, tree):
        other = library.create_tag(tree.places, "Dogs")
        assert other.id != tree.dogs.id

    def test_unsaved_parent_rejected(self, library, root):
        with pytest.raises(ValidationError):
            library.create_tag(TagNode(root, "Ghost"), "Child")

    def test_create_emits_added_event(self, library, tree):
        events = _record_events(library)
        library.create_tag(tree.dogs, "Puppies")
        assert events == [(ChangeKind.ADDED, "Dogs", "Puppies")]


class TestLeafPromotion:
    """A tagged leaf that gains a child hands its files to that child."""

    def test_create_under_tagged_leaf_retags_files(self, library, tree, store, prompts, add_file):
        add_file("a.jpg", tree.dogs)
        puppies = library.create_tag(tree.dogs, "Puppies")
        assert prompts.calls == [("confirm_retag", "Dogs", "Puppies", ["a.jpg"])]
        assert store.fetch_file_tags("a.jpg") == [puppies.id]
        assert store.files_tagged_with(tree.dogs.id) == []

    def test_declined_promotion_changes_nothing(self, library, tree, store, prompts, add_file):
        add_file("a.jpg", tree.dogs)
        prompts.retag_answer = False
        with pytest.raises(UserDeclinedError):
            library.create_tag(tree.dogs, "Puppies")
        assert tree.dogs.get_children() == ()
        assert store.fetch_child_tags(tree.dogs.id) == []
        assert store.fetch_file_tags("a.jpg") == [tree.dogs.id]

    def test_untagged_leaf_needs_no_confirmation(self, library, tree, prompts):
        library.create_tag(tree.dogs, "Puppies")
        assert prompts.calls == []

    def test_reparent_onto_tagged_leaf_retags_files(self, library, tree, store, prompts, add_file):
        add_file("p.jpg", tree.paris)
        add_file("c.jpg", tree.cats)
        assert library.move_tag(tree.cats, tree.paris) is True
        assert prompts.calls == [("confirm_retag", "Paris", "Cats", ["p.jpg"])]
        assert store.fetch_file_tags("p.jpg") == [tree.cats.id]
        assert store.fetch_file_tags("c.jpg") == [tree.cats.id]
        assert store.fetch_tag_lineage(tree.cats.id) == [tree.places.id, tree.paris.id, tree.cats.id]
        assert tree.cats.parent is tree.paris

    def test_declined_reparent_changes_nothing(self, library, tree, store, prompts, add_file):
        add_file("p.jpg", tree.paris)
        prompts.retag_answer = False
        with pytest.raises(UserDeclinedError):
            library.move_tag(tree.cats, tree.paris)
        assert tree.cats.parent is tree.animals
        assert _names(tree.animals.get_children()) == ["Cats", "Dogs"]
        assert store.fetch_tag_lineage(tree.cats.id) == [tree.animals.id, tree.cats.id]
        assert store.fetch_file_tags("p.jpg") == [tree.paris.id]


class TestRenameTag:

    def test_rename_updates_store_and_node(self, library, tree, reopen):
        assert library.rename_tag(tree.dogs, "Hounds") is True
        assert tree.dogs.name == "Hounds"
        fresh = reopen()
        assert fresh.root.find_by_path(["Animals", "Hounds"]).id == tree.dogs.id

    def test_rename_keeps_siblings_sorted(self, library, tree, root):
        library.rename_tag(tree.animals, "Zoo")
        assert _names(root.get_children()) == ["Places", "Zoo"]

    def test_unsaved_tag_rename_reports_failure(self, library, root):
        assert library.rename_tag(TagNode(root, "Ghost"), "Spirit") is False

    def test_rename_to_sibling_name_rejected(self, library, tree):
        with pytest.raises(ValidationError):
            library.rename_tag(tree.dogs, "cats")

    def test_rename_changing_case_only(self, library, tree):
        assert library.rename_tag(tree.dogs, "DOGS") is True
        assert tree.dogs.name == "DOGS"

    def test_rename_root_rejected(self, library, root):
        with pytest.raises(ValidationError):
            library.rename_tag(root, "Top")

    def test_rename_invalid_name_rejected(self, library, tree):
        with pytest.raises(ValidationError):
            library.rename_tag(tree.dogs, "a/b")
        assert tree.dogs.name == "Dogs"


class TestReparentTag:
    """Parent links follow the node; root-level tags have none."""

    def test_move_to_root_deletes_link(self, library, tree, store):
        library.move_tag(tree.dogs, None)
        assert store.fetch_tag_lineage(tree.dogs.id) == [tree.dogs.id]
        assert ("Dogs", tree.dogs.id) in store.fetch_root_tags()
        assert _names(tree.animals.get_children()) == ["Cats"]
        assert _names(library.root.get_children()) == ["Animals", "Dogs", "Places"]

    def test_move_root_level_tag_inserts_link(self, library, tree, store):
        library.move_tag(tree.places, tree.animals)
        assert store.fetch_tag_lineage(tree.paris.id) == [
            tree.animals.id, tree.places.id, tree.paris.id,
        ]
        assert _names(library.root.get_children()) == ["Animals"]

    def test_move_between_parents_updates_link(self, library, tree, store):
        library.move_tag(tree.paris, tree.animals)
        assert store.fetch_child_tags(tree.places.id) == []
        assert store.fetch_tag_lineage(tree.paris.id) == [tree.animals.id, tree.paris.id]
        assert _names(tree.animals.get_children()) == ["Cats", "Dogs", "Paris"]

    def test_move_into_own_subtree_rejected(self, library, tree):
        with pytest.raises(ValidationError):
            library.move_tag(tree.animals, tree.dogs)
        with pytest.raises(ValidationError):
            library.move_tag(tree.animals, tree.animals)

    def test_move_to_current_parent_is_noop(self, library, tree, prompts):
        events = _record_events(library)
        assert library.move_tag(tree.dogs, tree.animals) is True
        assert events == []

    def test_move_next_to_same_name_rejected(self, library, tree):
        library.create_tag(tree.animals, "paris")
        with pytest.raises(ValidationError):
            library.move_tag(tree.paris, tree.animals)
        assert tree.paris.parent is tree.places

    def test_attach_happens_before_detach(self, library, tree):
        seen = []

        def listener(event):
            seen.append((event.kind, event.parent.name, event.child.name))
            if event.kind == ChangeKind.REMOVED:
                assert event.child.parent is tree.animals
                assert tree.animals.get_child("Paris") is event.child

        library.subscribe(listener)
        library.move_tag(tree.paris, tree.animals)
        assert seen == [
            (ChangeKind.ADDED, "Animals", "Paris"),
            (ChangeKind.REMOVED, "Places", "Paris"),
        ]


class TestDeleteCascade:
    """Children go first, last to first, and a refusal stops the cascade."""

    def test_delete_leaf(self, library, tree, store):
        library.delete_tag(tree.paris)
        assert store.tag_exists(tree.paris.id) is False
        assert tree.places.get_children() == ()

    def test_children_deleted_first_in_reverse_order(self, library, tree, store):
        events = _record_events(library)
        library.delete_tag(tree.animals)
        assert events == [
            (ChangeKind.REMOVED, "Animals", "Dogs"),
            (ChangeKind.REMOVED, "Animals", "Cats"),
            (ChangeKind.REMOVED, "root", "Animals"),
        ]
        for node in (tree.animals, tree.dogs, tree.cats):
            assert store.tag_exists(node.id) is False

    def test_cancel_stops_cascade(self, library, tree, store, prompts, add_file):
        add_file("c.jpg", tree.cats)
        prompts.orphan_choice = OrphanChoice.CANCEL
        with pytest.raises(UserDeclinedError):
            library.delete_tag(tree.animals)

        # Dogs went before Cats refused; everything above Cats stays.
        assert store.tag_exists(tree.dogs.id) is False
        assert store.tag_exists(tree.cats.id) is True
        assert store.tag_exists(tree.animals.id) is True
        assert _names(tree.animals.get_children()) == ["Cats"]
        assert store.fetch_file_tags("c.jpg") == [tree.cats.id]

    def test_shared_files_are_not_orphans(self, library, tree, store, prompts, add_file):
        add_file("f.jpg", tree.dogs, tree.paris)
        library.delete_tag(tree.dogs)
        assert prompts.calls == []
        assert store.fetch_file_tags("f.jpg") == [tree.paris.id]

    def test_unfetched_descendants_are_deleted(self, tree, store, reopen):
        fresh = reopen()
        animals = fresh.root.get_children()[0]
        assert animals.fetched_children is False
        fresh.delete_tag(animals)
        assert store.tag_exists(tree.dogs.id) is False
        assert store.tag_exists(tree.cats.id) is False
        assert _names(fresh.root.get_children()) == ["Places"]

    def test_delete_root_rejected(self, library, root):
        with pytest.raises(ValidationError):
            library.delete_tag(root)

    def test_delete_unsaved_rejected(self, library, root):
        with pytest.raises(ValidationError):
            library.delete_tag(TagNode(root, "Ghost"))


class TestOrphanResolution:
    """Files whose only tag is being deleted."""

    def test_user_is_asked_before_tag_row_is_removed(self, library, tree, store, add_file):
        seen = {}

        class Prompts(MutationPrompts):
            def resolve_orphans(self, tag, files):
                seen["exists"] = store.tag_exists(tag.id)
                seen["files"] = files
                return OrphanChoice.DELETE_FILES

        add_file("d.jpg", tree.dogs)
        tree.dogs._prompts = Prompts()
        library.delete_tag(tree.dogs)
        assert seen == {"exists": True, "files": ["d.jpg"]}

    def test_delete_orphaned_files(self, library, tree, store, prompts, add_file):
        add_file("d.jpg", tree.dogs)
        add_file("e.jpg", tree.dogs, tree.paris)
        prompts.orphan_choice = OrphanChoice.DELETE_FILES
        library.delete_tag(tree.dogs)
        assert prompts.calls == [("resolve_orphans", "Dogs", ["d.jpg"])]
        assert store.file_exists("d.jpg") is False
        assert store.file_exists("e.jpg") is True
        assert store.tag_exists(tree.dogs.id) is False

    def test_retag_orphaned_files(self, library, tree, store, prompts, add_file):
        add_file("d.jpg", tree.dogs)
        prompts.orphan_choice = OrphanChoice.RETAG
        prompts.replacement = tree.paris
        library.delete_tag(tree.dogs)
        assert store.fetch_file_tags("d.jpg") == [tree.paris.id]
        assert store.tag_exists(tree.dogs.id) is False
        assert store.files_tagged_with(tree.dogs.id) == []
        assert store.fetch_tag_lineage(tree.dogs.id) == []

    def test_no_replacement_picked_cancels(self, library, tree, store, prompts, add_file):
        add_file("d.jpg", tree.dogs)
        prompts.orphan_choice = OrphanChoice.RETAG
        prompts.replacement = None
        with pytest.raises(UserDeclinedError):
            library.delete_tag(tree.dogs)
        assert store.tag_exists(tree.dogs.id) is True
        assert store.fetch_file_tags("d.jpg") == [tree.dogs.id]

    def test_non_leaf_replacement_rejected(self, library, tree, store, prompts, add_file):
        add_file("d.jpg", tree.dogs)
        prompts.orphan_choice = OrphanChoice.RETAG
        prompts.replacement = tree.places
        with pytest.raises(ValidationError):
            library.delete_tag(tree.dogs)
        assert store.tag_exists(tree.dogs.id) is True

    def test_replacement_inside_deleted_subtree_rejected(self, library, tree, prompts, add_file):
        add_file("d.jpg", tree.dogs)
        prompts.orphan_choice = OrphanChoice.RETAG
        prompts.replacement = tree.dogs
        with pytest.raises(ValidationError):
            library.delete_tag(tree.dogs)

    def test_parent_of_only_child_accepted(self, library, tree, store, prompts, add_file):
        library.delete_tag(tree.cats)
        add_file("d.jpg", tree.dogs)
        prompts.orphan_choice = OrphanChoice.RETAG
        prompts.replacement = tree.animals
        library.delete_tag(tree.dogs)
        assert store.tag_exists(tree.dogs.id) is False
        assert store.fetch_file_tags("d.jpg") == [tree.animals.id]
        assert tree.animals.is_leaf()

    def test_sibling_in_same_cascade_rejected(self, library, tree, store, prompts, add_file):
        add_file("d.jpg", tree.dogs)
        prompts.orphan_choice = OrphanChoice.RETAG
        prompts.replacement = tree.cats
        with pytest.raises(ValidationError):
            library.delete_tag(tree.animals)
        assert store.fetch_file_tags("d.jpg") == [tree.dogs.id]


class TestSnapshot:

    def test_snapshot_reflects_tree_state(self, library, tree):
        tree.animals.activate_node(True)
        tree.paris.exclude_node(True)
        nodes = library.tags.snapshot()
        assert [n.name for n in nodes] == ["Animals", "Places"]

        animals, places = nodes
        assert animals.active and animals.self_activated and not animals.leaf
        assert [c.path for c in animals.children] == ["Animals->Cats", "Animals->Dogs"]
        assert animals.children[1].active and not animals.children[1].self_activated
        assert places.children[0].excluded and places.children[0].leaf

    def test_snapshot_skips_unfetched_children(self, tree, reopen):
        fresh = reopen()
        fresh.root.get_children()
        snap = fresh.tags.snapshot()
        assert [n.children for n in snap] == [[], []]
        assert [n.leaf for n in snap] == [False, False]
