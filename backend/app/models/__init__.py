from app.models.folder import Folder
from app.models.note import Note

__all__ = ["Folder", "Note"]
