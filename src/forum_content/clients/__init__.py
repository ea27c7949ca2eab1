"""HTTP clients for external collaborators."""

from .file_store import FileStore, UploadItem, get_file_store
from .user_directory import UserCache, UserDirectory, UserSummary, get_user_directory

__all__ = [
    "FileStore",
    "UploadItem",
    "UserCache",
    "UserDirectory",
    "UserSummary",
    "get_file_store",
    "get_user_directory",
]
