# services/permission_resolver.py

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from sqlalchemy import or_

from extensions import db
from models import Document, Folder, ItemType, PermissionLevel, Share, User
from services.errors import NotFound, ValidationError
from services.folder_tree import FolderTree
from utils.performance_logger import (
    PerformanceTracker,
    log_accessible_set_stats,
    performance_monitor,
)

logger = logging.getLogger(__name__)

Item = Union[Document, Folder]


@dataclass
class ResolvedShare:
    """A share row attributed to an item, either directly or through an ancestor folder."""
    share: Share
    inherited_from: Optional[Folder] = None

    @property
    def is_inherited(self) -> bool:
        return self.inherited_from is not None

    @property
    def dedupe_key(self) -> Tuple:
        return (
            self.share.owner_id,
            self.share.target_user_id,
            self.share.document_id,
            self.share.folder_id,
            self.share.permission,
            self.inherited_from.id if self.inherited_from is not None else None,
        )

    def to_dict(self) -> Dict:
        data = self.share.to_dict()
        data['inherited'] = self.is_inherited
        data['inherited_from'] = (
            {'type': ItemType.FOLDER.value, 'id': self.inherited_from.id, 'name': self.inherited_from.name}
            if self.inherited_from is not None else None
        )
        return data


@dataclass
class AccessDecision:
    """Effective permission of one user on one item."""
    permission: Optional[PermissionLevel] = None
    source: str = "none"  # "direct", "inherited", "admin", "owner", "department"
    inherited_from: Optional[int] = None

    @property
    def has_access(self) -> bool:
        return self.permission is not None

    def allows(self, required: PermissionLevel) -> bool:
        return self.permission is not None and self.permission.rank >= required.rank

    def to_dict(self) -> Dict:
        return {
            'permission': self.permission.value if self.permission else None,
            'source': self.source,
            'inherited_from': self.inherited_from,
            'has_access': self.has_access,
        }


@dataclass
class AccessibleFolder:
    folder: Folder
    permission: PermissionLevel
    is_root: bool
    direct_share: Optional[Share]
    granting_share: Optional[Share]


@dataclass
class AccessibleDocument:
    document: Document
    permission: PermissionLevel
    direct_share: Optional[Share]
    granting_share: Optional[Share]


def parse_item_type(item_type) -> ItemType:
    if isinstance(item_type, ItemType):
        return item_type
    try:
        return ItemType(str(item_type).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid item type '{item_type}', expected 'document' or 'folder'",
                              'INVALID_ITEM_TYPE')


def load_item(item_type, item_id) -> Item:
    kind = parse_item_type(item_type)
    if item_id is None:
        raise ValidationError("item_id is required", 'MISSING_ITEM_ID')
    model = Document if kind is ItemType.DOCUMENT else Folder
    item = db.session.get(model, item_id)
    if item is None:
        raise NotFound(f"{kind.value.capitalize()} {item_id} not found")
    return item


class PermissionResolver:
    """
    Computes who can reach a document or folder, and with which permission.

    Two views are exposed and they deliberately differ:
    - resolve_item_shares lists every grant on an item, direct and inherited,
      without reducing them;
    - compute_accessible_folder_set floods each shared root's permission down
      its subtree.

    A folder shared directly inside another shared folder keeps its own
    level, and its subtree gets that level rather than the outer root's.
    """

    def __init__(self, max_depth: Optional[int] = None):
        self.max_depth = max_depth

    def _tree(self) -> FolderTree:
        return FolderTree(max_depth=self.max_depth)

    @performance_monitor("PermissionResolver.resolve_item_shares", operation_type="permission")
    def resolve_item_shares(self, item_type, item_id) -> List[ResolvedShare]:
        """
        Direct shares of the item followed by the shares of its ancestor folders.

        Documents start the upward walk at their folder, folders at their
        parent: a folder never inherits from itself. Inherited rows come
        nearest ancestor first.
        """
        kind = parse_item_type(item_type)
        item = load_item(kind, item_id)

        column = Share.document_id if kind is ItemType.DOCUMENT else Share.folder_id
        direct = Share.query.filter(column == item.id).order_by(Share.id).all()
        resolved = [ResolvedShare(share) for share in direct]

        start_id = item.folder_id if kind is ItemType.DOCUMENT else item.parent_id
        if start_id is not None:
            ancestors = self._tree().ancestor_chain(start_id)
            if ancestors:
                rows = (Share.query
                        .filter(Share.folder_id.in_([a.id for a in ancestors]))
                        .order_by(Share.id)
                        .all())
                by_folder: Dict[int, List[Share]] = {}
                for share in rows:
                    by_folder.setdefault(share.folder_id, []).append(share)
                for ancestor in ancestors:
                    for share in by_folder.get(ancestor.id, []):
                        resolved.append(ResolvedShare(share, inherited_from=ancestor))

        seen = set()
        unique = []
        for entry in resolved:
            key = entry.dedupe_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(entry)
        return unique

    def resolve_permission_for_user(self, user_id: int, item_type, item_id) -> Optional[PermissionLevel]:
        """Share-derived permission: direct grant, else nearest inherited grant, else None."""
        for entry in self.resolve_item_shares(item_type, item_id):
            if entry.share.target_user_id != user_id:
                continue
            level = entry.share.permission_level
            if level is not None:
                return level
        return None

    def resolve_access(self, user: User, item_type, item_id) -> AccessDecision:
        """
        Effective permission including admin, ownership and department fallbacks.

        A share grant always wins, even when it is lower than what the role
        would give.
        """
        kind = parse_item_type(item_type)
        item = load_item(kind, item_id)

        for entry in self.resolve_item_shares(kind, item.id):
            if entry.share.target_user_id != user.id:
                continue
            level = entry.share.permission_level
            if level is None:
                continue
            if entry.is_inherited:
                return AccessDecision(level, "inherited", entry.inherited_from.id)
            return AccessDecision(level, "direct")

        same_department = user.department_id is not None and item.department_id == user.department_id

        if user.is_super_admin() or (user.is_admin() and same_department):
            return AccessDecision(PermissionLevel.EDITOR, "admin")

        owner_ids = {item.owner_id}
        if kind is ItemType.DOCUMENT and item.uploaded_by is not None:
            owner_ids.add(item.uploaded_by)
        if user.id in owner_ids:
            return AccessDecision(PermissionLevel.EDITOR, "owner")

        if same_department:
            return AccessDecision(PermissionLevel.CONTRIBUTOR, "department")

        return AccessDecision()

    @performance_monitor("PermissionResolver.compute_accessible_folder_set", operation_type="permission")
    def compute_accessible_folder_set(self, user_id: int) -> "OrderedDict[int, AccessibleFolder]":
        with PerformanceTracker("PermissionResolver.accessible_folders") as tracker:
            root_shares = (Share.query
                           .filter(Share.target_user_id == user_id, Share.folder_id.isnot(None))
                           .order_by(Share.id)
                           .all())

            roots: "OrderedDict[int, PermissionLevel]" = OrderedDict()
            shares_by_folder: Dict[int, Share] = {}
            for share in root_shares:
                roots[share.folder_id] = share.permission_level or PermissionLevel.VIEWER
                shares_by_folder[share.folder_id] = share

            tracker.count("roots", len(roots))
            tree = self._tree()
            flooded = tree.flood_permissions(roots)

            result: "OrderedDict[int, AccessibleFolder]" = OrderedDict()
            for folder_id, entry in flooded.items():
                folder = tree.get(folder_id)
                result[folder_id] = AccessibleFolder(
                    folder=folder,
                    permission=entry.permission,
                    is_root=folder_id in roots and folder.parent_id not in flooded,
                    direct_share=shares_by_folder.get(folder_id),
                    granting_share=shares_by_folder.get(entry.root_id),
                )

        log_accessible_set_stats(user_id, "folder", len(result), tracker.duration_ms,
                                 share_count=len(root_shares))
        return result

    @performance_monitor("PermissionResolver.compute_accessible_document_set", operation_type="permission")
    def compute_accessible_document_set(self, user_id: int, folder_filter: Optional[int] = None,
                                        accessible_folders=None) -> "OrderedDict[int, AccessibleDocument]":
        """
        Documents shared to the user directly or through an accessible folder.

        Trashed and archived documents are left out. ``accessible_folders``
        lets a caller reuse a folder set it already computed in the same request.
        """
        with PerformanceTracker("PermissionResolver.accessible_documents") as tracker:
            folders = accessible_folders
            if folders is None:
                folders = self.compute_accessible_folder_set(user_id)

            direct_shares = (Share.query
                             .filter(Share.target_user_id == user_id, Share.document_id.isnot(None))
                             .all())
            direct_by_document = {share.document_id: share for share in direct_shares}
            tracker.count("direct", len(direct_by_document))

            conditions = []
            if direct_by_document:
                conditions.append(Document.id.in_(list(direct_by_document)))
            if folders:
                conditions.append(Document.folder_id.in_(list(folders)))

            result: "OrderedDict[int, AccessibleDocument]" = OrderedDict()
            documents = []
            if conditions:
                query = Document.query.filter(
                    or_(*conditions),
                    Document.trashed_at.is_(None),
                    Document.archived_at.is_(None),
                )
                if folder_filter is not None:
                    query = query.filter(Document.folder_id == folder_filter)
                documents = query.order_by(Document.title, Document.id).all()

            for document in documents:
                share = direct_by_document.get(document.id)
                folder_entry = folders.get(document.folder_id) if document.folder_id is not None else None

                if share is not None:
                    permission = share.permission_level or PermissionLevel.VIEWER
                elif folder_entry is not None:
                    permission = folder_entry.permission
                else:
                    permission = PermissionLevel.VIEWER

                result[document.id] = AccessibleDocument(
                    document=document,
                    permission=permission,
                    direct_share=share,
                    granting_share=share if share is not None else (
                        folder_entry.granting_share if folder_entry else None),
                )

        log_accessible_set_stats(user_id, "document", len(result), tracker.duration_ms,
                                 share_count=len(direct_shares))
        return result
