from __future__ import annotations

from tests.support.factories import make_source_file
from wikiportraits.adapters.previews import InMemoryPreviewStore


def test_handles_are_unique_and_resolvable() -> None:
    store = InMemoryPreviewStore()
    file = make_source_file("gig.jpg")

    first = store.allocate(file)
    second = store.allocate(file)

    assert first != second
    assert first.startswith("preview://")
    assert first.endswith("/gig.jpg")
    assert store.resolve(first) is file
    assert store.live_handles == {first, second}


def test_release_is_idempotent() -> None:
    store = InMemoryPreviewStore()
    handle = store.allocate(make_source_file())

    store.release(handle)
    store.release(handle)

    assert store.resolve(handle) is None
    assert not store.live_handles
