"""In-process preview handle store."""

from __future__ import annotations

import secrets
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wikiportraits.domain.model.images import SourceFile

log = getLogger(__name__)

PREVIEW_SCHEME = "preview://"


class InMemoryPreviewStore:
    """Hands out opaque preview handles and tracks which are still live."""

    def __init__(self) -> None:
        self._handles: dict[str, SourceFile] = {}

    def allocate(self, file: SourceFile) -> str:
        handle = f"{PREVIEW_SCHEME}{secrets.token_hex(8)}/{file.name}"
        self._handles[handle] = file
        return handle

    def release(self, handle: str) -> None:
        if self._handles.pop(handle, None) is None:
            log.debug("Preview %s was already released", handle)

    def resolve(self, handle: str) -> SourceFile | None:
        return self._handles.get(handle)

    @property
    def live_handles(self) -> frozenset[str]:
        return frozenset(self._handles)


__all__ = ["InMemoryPreviewStore"]
