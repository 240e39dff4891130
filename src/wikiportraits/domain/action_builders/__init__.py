"""Workflow-specific action builders and the factory that picks one."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wikiportraits.domain.model.form import WorkflowType

from .base import BaseActionBuilder, category_status, depicts_for
from .contracts import ActionBuilder, BuilderContext, BuiltActions, build_all
from .general import GeneralActionBuilder
from .music import EVENT_PLACEHOLDER_ID, MusicActionBuilder

if TYPE_CHECKING:
    from wikiportraits.domain.ports.knowledge_base import KnowledgeBaseClient
    from wikiportraits.domain.ports.media_repository import MediaRepositoryClient

_MUSIC_ALIASES = frozenset({"music", WorkflowType.MUSIC_EVENT.value})


def _normalize_workflow(workflow_type: WorkflowType | str) -> WorkflowType:
    if workflow_type in _MUSIC_ALIASES:
        return WorkflowType.MUSIC_EVENT
    return WorkflowType.GENERAL


class ActionBuilderFactory:
    """Hands out one builder per workflow type, sharing the injected clients."""

    def __init__(
        self,
        *,
        knowledge_base: KnowledgeBaseClient,
        media: MediaRepositoryClient,
    ) -> None:
        self.knowledge_base = knowledge_base
        self.media = media
        self._builders: dict[WorkflowType, BaseActionBuilder] = {}

    def get(self, workflow_type: WorkflowType | str) -> BaseActionBuilder:
        key = _normalize_workflow(workflow_type)
        builder = self._builders.get(key)
        if builder is None:
            builder_cls = (
                MusicActionBuilder if key is WorkflowType.MUSIC_EVENT else GeneralActionBuilder
            )
            builder = builder_cls(knowledge_base=self.knowledge_base, media=self.media)
            self._builders[key] = builder
        return builder

    def clear(self) -> None:
        self._builders.clear()


def get_action_builder(
    workflow_type: WorkflowType | str,
    *,
    knowledge_base: KnowledgeBaseClient,
    media: MediaRepositoryClient,
) -> BaseActionBuilder:
    return ActionBuilderFactory(knowledge_base=knowledge_base, media=media).get(workflow_type)


__all__ = [
    "EVENT_PLACEHOLDER_ID",
    "ActionBuilder",
    "ActionBuilderFactory",
    "BaseActionBuilder",
    "BuilderContext",
    "BuiltActions",
    "GeneralActionBuilder",
    "MusicActionBuilder",
    "build_all",
    "category_status",
    "depicts_for",
    "get_action_builder",
]
