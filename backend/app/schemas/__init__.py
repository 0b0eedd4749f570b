from app.schemas.folder import (
    FolderCreate,
    FolderNode,
    FolderResponse,
    FolderUpdate,
    NoteNode,
    TreeAnomaly,
    TreeBuildResult,
    TreeNode,
)
from app.schemas.note import NoteCreate, NoteResponse, NoteUpdate, UniqueTitleResponse

__all__ = [
    "FolderCreate",
    "FolderNode",
    "FolderResponse",
    "FolderUpdate",
    "NoteNode",
    "TreeAnomaly",
    "TreeBuildResult",
    "TreeNode",
    "NoteCreate",
    "NoteResponse",
    "NoteUpdate",
    "UniqueTitleResponse",
]
