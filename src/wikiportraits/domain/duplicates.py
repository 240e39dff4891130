"""Duplicate detection for files added to the upload queue.

Candidates are compared against images already in the session first, then against
earlier candidates of the same batch. Files the operator confirmed are let through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from wikiportraits.domain.model.images import ImageRecord, SourceFile

SIMILAR_MTIME_SECONDS = 1.0


class DuplicateReason(StrEnum):
    IDENTICAL = "identical"
    SAME_NAME = "same-name"
    SIMILAR_SIZE = "similar-size"


@dataclass(slots=True, frozen=True)
class DuplicateMatch:
    file: SourceFile
    # ``None`` when the clash is with an earlier file of the same batch
    duplicate_of: str | None
    reason: DuplicateReason


@dataclass(slots=True, kw_only=True)
class DuplicateCheckResult:
    valid: list[SourceFile] = field(default_factory=list)
    duplicates: list[DuplicateMatch] = field(default_factory=list)


def _identical(a: SourceFile, b: SourceFile) -> bool:
    if a.digest is not None and b.digest is not None:
        return a.digest == b.digest
    return (
        a.name == b.name
        and a.size == b.size
        and a.media_type == b.media_type
        and a.last_modified == b.last_modified
    )


def _similar_size(a: SourceFile, b: SourceFile) -> bool:
    return (
        a.size == b.size
        and a.media_type == b.media_type
        and abs(a.last_modified - b.last_modified) < SIMILAR_MTIME_SECONDS
    )


def compare_files(candidate: SourceFile, other: SourceFile) -> DuplicateReason | None:
    if _identical(candidate, other):
        return DuplicateReason.IDENTICAL
    if candidate.name == other.name:
        return DuplicateReason.SAME_NAME
    if _similar_size(candidate, other):
        return DuplicateReason.SIMILAR_SIZE
    return None


def _file_key(file: SourceFile) -> tuple[str, int, float]:
    return (file.name, file.size, file.last_modified)


def detect_duplicates(
    candidates: Sequence[SourceFile],
    existing: Iterable[ImageRecord],
    *,
    confirmed: Iterable[SourceFile] = (),
) -> DuplicateCheckResult:
    """Split ``candidates`` into files safe to add and suspected duplicates."""

    existing_files = [(image.id, image.file) for image in existing if image.file is not None]
    confirmed_keys = {_file_key(file) for file in confirmed}
    result = DuplicateCheckResult()

    for candidate in candidates:
        if _file_key(candidate) in confirmed_keys:
            result.valid.append(candidate)
            continue

        match = _match_existing(candidate, existing_files)
        if match is None:
            match = _match_batch(candidate, result.valid)
        if match is None:
            result.valid.append(candidate)
        else:
            result.duplicates.append(match)
    return result


def _match_existing(
    candidate: SourceFile, existing: Sequence[tuple[str, SourceFile]]
) -> DuplicateMatch | None:
    for image_id, other in existing:
        reason = compare_files(candidate, other)
        if reason is not None:
            return DuplicateMatch(candidate, image_id, reason)
    return None


def _match_batch(candidate: SourceFile, accepted: Sequence[SourceFile]) -> DuplicateMatch | None:
    for other in accepted:
        reason = compare_files(candidate, other)
        if reason is not None:
            return DuplicateMatch(candidate, None, reason)
    return None


def duplicate_message(match: DuplicateMatch) -> str:
    match match.reason:
        case DuplicateReason.IDENTICAL:
            return "Identical file already exists"
        case DuplicateReason.SAME_NAME:
            return "File with same name already exists"
        case DuplicateReason.SIMILAR_SIZE:
            return "Very similar file detected (same size/type)"
