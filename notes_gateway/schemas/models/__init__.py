from .account import (
    Account,
    AccountCreate,
    AccountQueryOptions,
    AccountRole,
    AccountSync,
    AccountUpdate,
    HashAlgorithm,
)
from .common import CamelModel, OrderDirection, OwnedQueryOptions, PaginatedResult, QueryOptions
from .folder import Folder, FolderCreate, FolderQueryOptions, FolderSync, FolderUpdate
from .note import (
    Comment,
    Note,
    NoteCreate,
    NoteQueryOptions,
    NoteSync,
    NoteUpdate,
    NoteVersion,
    Visibility,
)

__all__ = [
    "Account",
    "AccountCreate",
    "AccountQueryOptions",
    "AccountRole",
    "AccountSync",
    "AccountUpdate",
    "CamelModel",
    "Comment",
    "Folder",
    "FolderCreate",
    "FolderQueryOptions",
    "FolderSync",
    "FolderUpdate",
    "HashAlgorithm",
    "Note",
    "NoteCreate",
    "NoteQueryOptions",
    "NoteSync",
    "NoteUpdate",
    "NoteVersion",
    "OrderDirection",
    "OwnedQueryOptions",
    "PaginatedResult",
    "QueryOptions",
    "Visibility",
]
