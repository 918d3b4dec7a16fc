"""Text, stat and project file collaborators."""

from .base import (
    FileStat,
    FileStatResult,
    ProjectEnumerationError,
    ProjectFileEnumerator,
    SourceReadError,
    SourceStatError,
    TextSource,
)
from .filesystem import (
    FilesystemStat,
    FilesystemTextSource,
    OpenDocument,
    ProjectFiles,
    has_extension,
    is_binary_file,
    is_text_file,
    should_exclude,
)

__all__ = [
    "FileStat",
    "FileStatResult",
    "FilesystemStat",
    "FilesystemTextSource",
    "OpenDocument",
    "ProjectEnumerationError",
    "ProjectFileEnumerator",
    "ProjectFiles",
    "SourceReadError",
    "SourceStatError",
    "TextSource",
    "has_extension",
    "is_binary_file",
    "is_text_file",
    "should_exclude",
]
