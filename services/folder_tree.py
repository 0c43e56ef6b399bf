# services/folder_tree.py

import logging
from collections import OrderedDict, namedtuple
from typing import Dict, Iterable, List, Optional

from flask import current_app, has_app_context

from extensions import db
from models import Folder, PermissionLevel
from services.errors import InconsistentState

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

FloodEntry = namedtuple("FloodEntry", ["permission", "root_id"])


def _configured_max_depth() -> int:
    if has_app_context():
        return int(current_app.config.get("MAX_TRAVERSAL_DEPTH", DEFAULT_MAX_DEPTH))
    return DEFAULT_MAX_DEPTH


class FolderTree:
    """
    Arena of folders keyed by id, filled lazily from the database.

    Every walk runs on an explicit work queue with a visited set and a depth
    bound, so a corrupted parent chain surfaces as InconsistentState instead of
    looping. One instance is meant to live for a single request: nothing is
    cached across calls, so results always reflect the current store state.
    """

    def __init__(self, max_depth: Optional[int] = None):
        self.max_depth = max_depth or _configured_max_depth()
        self._nodes: Dict[int, Folder] = {}

    def get(self, folder_id: int) -> Optional[Folder]:
        node = self._nodes.get(folder_id)
        if node is None:
            node = db.session.get(Folder, folder_id)
            if node is not None:
                self._nodes[folder_id] = node
        return node

    def children_of(self, parent_ids: Iterable[int]) -> List[Folder]:
        parent_ids = list(parent_ids)
        if not parent_ids:
            return []
        rows = (Folder.query
                .filter(Folder.parent_id.in_(parent_ids))
                .order_by(Folder.id)
                .all())
        for row in rows:
            self._nodes.setdefault(row.id, row)
        return rows

    def ancestor_chain(self, folder_id: int) -> List[Folder]:
        """
        Folders from ``folder_id`` up to its department root, nearest first.

        A dangling parent reference ends the chain.
        """
        chain = []
        visited = set()
        current_id = folder_id

        while current_id is not None:
            if current_id in visited:
                logger.error(f"Parent cycle detected while walking up from folder {folder_id} (revisited {current_id})")
                raise InconsistentState(f"Folder hierarchy contains a cycle at folder {current_id}", current_id)
            if len(chain) >= self.max_depth:
                logger.error(f"Ancestor walk from folder {folder_id} exceeded {self.max_depth} levels")
                raise InconsistentState(f"Folder hierarchy deeper than {self.max_depth} levels", folder_id)

            visited.add(current_id)
            folder = self.get(current_id)
            if folder is None:
                break
            chain.append(folder)
            current_id = folder.parent_id

        return chain

    def descendant_ids(self, folder_id: int, include_self: bool = True) -> List[int]:
        """Ids of the whole subtree under ``folder_id`` in BFS order."""
        visited = {folder_id}
        ordered = [folder_id]
        frontier = [folder_id]
        depth = 0

        while frontier:
            children = self.children_of(frontier)
            if not children:
                break

            depth += 1
            if depth > self.max_depth:
                raise InconsistentState(f"Folder subtree deeper than {self.max_depth} levels", folder_id)

            next_frontier = []
            for child in children:
                # Single-source BFS over a tree never meets a node twice
                if child.id in visited:
                    logger.error(f"Cycle detected below folder {folder_id} (revisited {child.id})")
                    raise InconsistentState(f"Folder hierarchy contains a cycle at folder {child.id}", child.id)
                visited.add(child.id)
                ordered.append(child.id)
                next_frontier.append(child.id)
            frontier = next_frontier

        return ordered if include_self else ordered[1:]

    def flood_permissions(self, roots: "OrderedDict[int, PermissionLevel]") -> "OrderedDict[int, FloodEntry]":
        """
        Multi-source BFS propagating each root's permission to its descendants.

        A folder keeps the first permission assigned to it: roots are assigned
        at level 0, so a directly shared folder nested under another shared
        folder keeps its own level and passes it down its own branch. Trashed
        or archived folders are neither assigned nor expanded.
        """
        assigned: "OrderedDict[int, FloodEntry]" = OrderedDict()

        for folder_id, permission in roots.items():
            folder = self.get(folder_id)
            if folder is None or not folder.is_listable or folder_id in assigned:
                continue
            # A root sitting on a parent cycle would flood back into itself
            self.ancestor_chain(folder_id)
            assigned[folder_id] = FloodEntry(permission, folder_id)

        frontier = list(assigned)
        levels = 0

        while frontier:
            children = []
            for child in self.children_of(frontier):
                if not child.is_listable:
                    continue
                if child.id in assigned:
                    # Only a root is met again from its parent; any other revisit is a cycle
                    if child.id in roots and child.parent_id != child.id:
                        continue
                    logger.error(f"Cycle detected while flooding shares (revisited folder {child.id})")
                    raise InconsistentState(f"Folder hierarchy contains a cycle at folder {child.id}", child.id)
                children.append(child)
            if not children:
                break

            levels += 1
            if levels > self.max_depth:
                raise InconsistentState(f"Shared folder tree deeper than {self.max_depth} levels")

            next_frontier = []
            for child in children:
                parent_entry = assigned.get(child.parent_id)
                if parent_entry is None:
                    parent_entry = FloodEntry(PermissionLevel.VIEWER, child.parent_id)
                assigned[child.id] = FloodEntry(parent_entry.permission, parent_entry.root_id)
                next_frontier.append(child.id)
            frontier = next_frontier

        return assigned
