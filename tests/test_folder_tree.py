"""
Tests for folder hierarchy traversal
"""
from collections import OrderedDict
from datetime import datetime, timezone

import pytest

from models import PermissionLevel
from services.errors import InconsistentState
from services.folder_tree import FolderTree


class TestAncestorChain:

    def test_chain_is_nearest_first(self, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        c = make_folder('C', parent=b)

        chain = FolderTree().ancestor_chain(c.id)

        assert [f.id for f in chain] == [c.id, b.id, a.id]

    def test_root_folder_chain_is_itself(self, make_folder):
        a = make_folder('A')
        assert [f.id for f in FolderTree().ancestor_chain(a.id)] == [a.id]

    def test_missing_folder_gives_empty_chain(self, app):
        assert FolderTree().ancestor_chain(9999) == []

    def test_parent_cycle_raises(self, db_session, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        a.parent_id = b.id
        db_session.commit()

        with pytest.raises(InconsistentState) as exc_info:
            FolderTree().ancestor_chain(b.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == 'INCONSISTENT_STATE'

    def test_depth_guard(self, make_folder):
        parent = None
        for i in range(5):
            parent = make_folder(f'level-{i}', parent=parent)

        with pytest.raises(InconsistentState):
            FolderTree(max_depth=3).ancestor_chain(parent.id)


class TestDescendants:

    def test_subtree_includes_self_by_default(self, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        c = make_folder('C', parent=b)
        make_folder('Other')

        assert FolderTree().descendant_ids(a.id) == [a.id, b.id, c.id]
        assert FolderTree().descendant_ids(a.id, include_self=False) == [b.id, c.id]

    def test_cycle_through_start_raises(self, db_session, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        a.parent_id = b.id
        db_session.commit()

        with pytest.raises(InconsistentState):
            FolderTree().descendant_ids(a.id)

    def test_depth_guard(self, make_folder):
        root = parent = make_folder('level-0')
        for i in range(1, 5):
            parent = make_folder(f'level-{i}', parent=parent)

        with pytest.raises(InconsistentState):
            FolderTree(max_depth=3).descendant_ids(root.id)

        assert len(FolderTree(max_depth=4).descendant_ids(root.id)) == 5


class TestFlood:

    def test_children_inherit_root_permission(self, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        c = make_folder('C', parent=b)

        flooded = FolderTree().flood_permissions(OrderedDict([(a.id, PermissionLevel.EDITOR)]))

        assert list(flooded) == [a.id, b.id, c.id]
        assert all(entry.permission is PermissionLevel.EDITOR for entry in flooded.values())
        assert all(entry.root_id == a.id for entry in flooded.values())

    def test_nested_root_keeps_its_own_level(self, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        c = make_folder('C', parent=b)
        sibling = make_folder('S', parent=a)

        flooded = FolderTree().flood_permissions(OrderedDict([
            (a.id, PermissionLevel.VIEWER),
            (b.id, PermissionLevel.EDITOR),
        ]))

        assert flooded[b.id].permission is PermissionLevel.EDITOR
        assert flooded[c.id].permission is PermissionLevel.EDITOR
        assert flooded[c.id].root_id == b.id
        assert flooded[sibling.id].permission is PermissionLevel.VIEWER

    def test_trashed_branch_is_skipped(self, make_folder):
        a = make_folder('A')
        trashed = make_folder('T', parent=a, trashed_at=datetime.now(timezone.utc))
        below = make_folder('Below', parent=trashed)

        flooded = FolderTree().flood_permissions(OrderedDict([(a.id, PermissionLevel.VIEWER)]))

        assert a.id in flooded
        assert trashed.id not in flooded
        assert below.id not in flooded

    def test_no_roots_floods_nothing(self, app):
        assert FolderTree().flood_permissions(OrderedDict()) == OrderedDict()

    def test_parent_cycle_through_shared_root_raises(self, db_session, make_folder):
        a = make_folder('A')
        b = make_folder('B', parent=a)
        a.parent_id = b.id
        db_session.commit()

        with pytest.raises(InconsistentState) as exc_info:
            FolderTree().flood_permissions(OrderedDict([(a.id, PermissionLevel.VIEWER)]))

        assert exc_info.value.status_code == 409

    def test_self_parented_root_raises(self, db_session, make_folder):
        a = make_folder('A')
        a.parent_id = a.id
        db_session.commit()

        with pytest.raises(InconsistentState):
            FolderTree().flood_permissions(OrderedDict([(a.id, PermissionLevel.EDITOR)]))
