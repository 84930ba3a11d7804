"""
Error taxonomy for everything around the diff parser.

The parser itself never raises; these cover git, the file system and the
comment store. Each class carries the HTTP status it maps to.
"""
from __future__ import annotations


class DiffViewerError(Exception):
    status_code: int = 500


class InvalidPathError(DiffViewerError):
    status_code = 400


class NotARepositoryError(DiffViewerError):
    status_code = 404


class FileAccessError(DiffViewerError):
    status_code = 404


class GitError(DiffViewerError, RuntimeError):
    status_code = 500


class CommentValidationError(DiffViewerError):
    status_code = 400


class CommentNotFoundError(DiffViewerError):
    status_code = 404


class CommentStoreError(DiffViewerError):
    status_code = 500
