"""Domain port definitions for adapters."""

from __future__ import annotations

from .files import ExifData, ExifReader, PreviewStore
from .knowledge_base import KnowledgeBaseClient
from .media_repository import (
    CategoryInfo,
    FileUpload,
    MediaRepositoryClient,
    StructuredDataSnapshot,
)

__all__ = [
    "CategoryInfo",
    "ExifData",
    "ExifReader",
    "FileUpload",
    "KnowledgeBaseClient",
    "MediaRepositoryClient",
    "PreviewStore",
    "StructuredDataSnapshot",
]
