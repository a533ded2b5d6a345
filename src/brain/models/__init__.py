from .dump import DumpEntry, DumpItem, ItemType
from .note import NoteFile
from .project import ProjectInfo
from .todo import GLYPH_STATUS, STATUS_GLYPHS, Status, TodoItem

__all__ = [
    "DumpEntry",
    "DumpItem",
    "ItemType",
    "NoteFile",
    "ProjectInfo",
    "GLYPH_STATUS",
    "STATUS_GLYPHS",
    "Status",
    "TodoItem",
]
