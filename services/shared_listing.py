# services/shared_listing.py

import logging
from typing import Any, Dict, List, Optional

from flask import current_app, has_app_context
from sqlalchemy import or_

from models import Department, Document, Folder, User
from services.folder_tree import FolderTree
from services.permission_resolver import AccessibleDocument, AccessibleFolder, PermissionResolver
from utils.performance_logger import performance_monitor

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _shared_by(share) -> Optional[Dict[str, Any]]:
    if share is None:
        return None
    return {
        'id': share.owner_id,
        'name': share.owner.name if share.owner else None,
    }


def serialize_folder(entry: AccessibleFolder) -> Dict[str, Any]:
    data = entry.folder.to_dict()
    data.update({
        'permission': entry.permission.value,
        'is_direct': entry.direct_share is not None,
        'share_id': entry.direct_share.id if entry.direct_share else None,
        'shared_by': _shared_by(entry.granting_share),
    })
    return data


def serialize_document(entry: AccessibleDocument) -> Dict[str, Any]:
    data = entry.document.to_dict()
    data.update({
        'permission': entry.permission.value,
        'is_direct': entry.direct_share is not None,
        'share_id': entry.direct_share.id if entry.direct_share else None,
        'shared_by': _shared_by(entry.granting_share),
    })
    return data


class SharedListingService:
    """Serves the "shared with me" browse and search views."""

    def __init__(self, resolver: Optional[PermissionResolver] = None, search_limit: Optional[int] = None):
        self.resolver = resolver or PermissionResolver()
        self._search_limit = search_limit

    @property
    def search_limit(self) -> int:
        if self._search_limit is not None:
            return self._search_limit
        if has_app_context():
            return int(current_app.config.get("SHARED_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT))
        return DEFAULT_SEARCH_LIMIT

    def _accessible(self, user_id: int):
        folders = self.resolver.compute_accessible_folder_set(user_id)
        documents = self.resolver.compute_accessible_document_set(user_id, accessible_folders=folders)
        return folders, documents

    @performance_monitor("SharedListingService.list_top_level")
    def list_top_level(self, user_id: int) -> Dict[str, List[Dict[str, Any]]]:
        """
        Shared roots and loose documents.

        A folder is top-level only when it was shared directly and none of
        its ancestors is reachable; a child of a shared folder is only listed
        inside its parent. Documents are top-level when their folder is not
        reachable, including documents at a department root.
        """
        folders, documents = self._accessible(user_id)

        top_folders = [entry for entry in folders.values() if entry.is_root]
        top_folders.sort(key=lambda e: (e.folder.name.lower(), e.folder.id))

        top_documents = [entry for entry in documents.values()
                         if entry.document.folder_id is None or entry.document.folder_id not in folders]

        return {
            'folders': [serialize_folder(entry) for entry in top_folders],
            'documents': [serialize_document(entry) for entry in top_documents],
        }

    @performance_monitor("SharedListingService.list_children")
    def list_children(self, user_id: int, folder_id: int) -> Dict[str, List[Dict[str, Any]]]:
        folders, documents = self._accessible(user_id)

        child_folders = [entry for entry in folders.values() if entry.folder.parent_id == folder_id]
        child_folders.sort(key=lambda e: (e.folder.name.lower(), e.folder.id))

        child_documents = [entry for entry in documents.values() if entry.document.folder_id == folder_id]

        return {
            'folders': [serialize_folder(entry) for entry in child_folders],
            'documents': [serialize_document(entry) for entry in child_documents],
        }

    @performance_monitor("SharedListingService.search")
    def search(self, user_id: int, query: Optional[str], under_folder_id: Optional[int] = None,
               parent_id: Optional[int] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Case-insensitive search within the items shared to a user.

        Scope, in order of precedence:
            under_folder_id: the folder's whole subtree
            parent_id: direct children of that folder
            neither: everything the user can reach

        A blank query never searches; it returns the plain listing for the
        same scope instead.
        """
        term = (query or "").strip()
        if not term:
            scope_id = under_folder_id if under_folder_id is not None else parent_id
            if scope_id is not None:
                return self.list_children(user_id, scope_id)
            return self.list_top_level(user_id)

        folders, documents = self._accessible(user_id)

        if under_folder_id is not None:
            subtree = set(FolderTree(max_depth=self.resolver.max_depth).descendant_ids(under_folder_id))
            folder_candidates = {fid: entry for fid, entry in folders.items()
                                 if fid in subtree and fid != under_folder_id}
            document_candidates = {did: entry for did, entry in documents.items()
                                   if entry.document.folder_id in subtree}
        elif parent_id is not None:
            folder_candidates = {fid: entry for fid, entry in folders.items()
                                 if entry.folder.parent_id == parent_id}
            document_candidates = {did: entry for did, entry in documents.items()
                                   if entry.document.folder_id == parent_id}
        else:
            folder_candidates = folders
            document_candidates = documents

        pattern = _like_pattern(term)
        limit = self.search_limit

        matched_folders = []
        if folder_candidates:
            rows = (Folder.query
                    .filter(Folder.id.in_(list(folder_candidates)),
                            Folder.name.ilike(pattern, escape="\\"))
                    .order_by(Folder.name, Folder.id)
                    .limit(limit)
                    .all())
            matched_folders = [folder_candidates[row.id] for row in rows]

        matched_documents = []
        if document_candidates:
            rows = (Document.query
                    .outerjoin(User, Document.owner_id == User.id)
                    .outerjoin(Department, Document.department_id == Department.id)
                    .outerjoin(Folder, Document.folder_id == Folder.id)
                    .filter(Document.id.in_(list(document_candidates)),
                            or_(Document.title.ilike(pattern, escape="\\"),
                                Document.original_filename.ilike(pattern, escape="\\"),
                                User.name.ilike(pattern, escape="\\"),
                                Department.name.ilike(pattern, escape="\\"),
                                Folder.name.ilike(pattern, escape="\\")))
                    .order_by(Document.title, Document.id)
                    .limit(limit)
                    .all())
            matched_documents = [document_candidates[row.id] for row in rows]

        logger.debug(f"Shared search user_id={user_id} q={term!r} under={under_folder_id} parent={parent_id} "
                     f"-> {len(matched_folders)} folders, {len(matched_documents)} documents")

        return {
            'folders': [serialize_folder(entry) for entry in matched_folders],
            'documents': [serialize_document(entry) for entry in matched_documents],
        }
