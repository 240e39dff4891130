from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.support.factories import make_entity
from tests.support.fakes import FakeKnowledgeBase, FakeMediaRepository
from wikiportraits.config.wikimedia import WikimediaConfig, get_wikimedia_config
from wikiportraits.domain.model.entity import KnowledgeBaseEntity

if TYPE_CHECKING:
    from pathlib import Path

_ENV_VARS = (
    "WIKIPORTRAITS_APP_NAME",
    "WIKIPORTRAITS_CONTACT",
    "WIKIMEDIA_ACCESS_TOKEN",
    "WIKIPORTRAITS_AUTHOR_QID",
    "WIKIPORTRAITS_DATA_DIR",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WIKIPORTRAITS_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def wikimedia_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIKIPORTRAITS_APP_NAME", "WikiPortraitsTest/0.1")
    monkeypatch.setenv("WIKIPORTRAITS_CONTACT", "test@example.org")


@pytest.fixture
def wikimedia_config(wikimedia_env: None, monkeypatch: pytest.MonkeyPatch) -> WikimediaConfig:
    del wikimedia_env
    monkeypatch.setenv("WIKIMEDIA_ACCESS_TOKEN", "secret")
    return get_wikimedia_config()


@pytest.fixture
def band() -> KnowledgeBaseEntity:
    return make_entity("Q100", "Test Band")


@pytest.fixture
def knowledge_base(band: KnowledgeBaseEntity) -> FakeKnowledgeBase:
    return FakeKnowledgeBase([band])


@pytest.fixture
def media() -> FakeMediaRepository:
    return FakeMediaRepository()
