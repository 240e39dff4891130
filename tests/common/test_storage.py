from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003

import pytest

from wikiportraits.config import storage


def test_data_dir_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("WIKIPORTRAITS_DATA_DIR", str(custom))

    assert storage.data_dir() == custom.resolve()
    assert custom.is_dir()


@pytest.mark.skipif(os.name == "nt", reason="uses XDG_DATA_HOME")
def test_blank_data_dir_falls_back_to_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WIKIPORTRAITS_DATA_DIR", "  ")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))

    assert storage.data_dir(create=False) == (tmp_path / "xdg" / "wikiportraits").resolve()


def test_search_cache_lives_in_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WIKIPORTRAITS_DATA_DIR", str(tmp_path / "data-dir"))

    path = storage.search_cache_path()

    assert path == (tmp_path / "data-dir" / storage.SEARCH_CACHE_FILENAME).resolve()
    assert path.parent.exists()


def test_search_cache_path_without_create_leaves_disk_alone(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("WIKIPORTRAITS_DATA_DIR", str(tmp_path / "untouched"))

    path = storage.search_cache_path(create=False)

    assert not path.parent.exists()
