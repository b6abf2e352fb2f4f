from .account_repository import AccountRepository
from .base_repository import BaseRepository, BulkSyncFailure, BulkSyncResult, OwnedRepository
from .folder_repository import FolderRepository
from .note_repository import NoteRepository
from .query_builder import PredicateBuilder, UpdateBuilder, escape_like

__all__ = [
    "AccountRepository",
    "BaseRepository",
    "BulkSyncFailure",
    "BulkSyncResult",
    "FolderRepository",
    "NoteRepository",
    "OwnedRepository",
    "PredicateBuilder",
    "UpdateBuilder",
    "escape_like",
]
