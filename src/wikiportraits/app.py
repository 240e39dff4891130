"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from wikiportraits.adapters.commons import CommonsClient
from wikiportraits.adapters.exif import PillowExifReader
from wikiportraits.adapters.http_resilience import (
    raise_on_mediawiki_lag,
    should_cache_mediawiki_payload,
)
from wikiportraits.adapters.previews import InMemoryPreviewStore
from wikiportraits.adapters.session_file import load_session_file
from wikiportraits.adapters.wikidata import WikidataClient
from wikiportraits.config.env import optional_env_var
from wikiportraits.config.wikimedia import get_wikimedia_config
from wikiportraits.domain.action_builders import ActionBuilderFactory
from wikiportraits.domain.duplicates import DuplicateMatch, detect_duplicates
from wikiportraits.domain.file_processor import FileProcessor, new_image_id
from wikiportraits.domain.model.entity import EntityRef, KnowledgeBaseEntity, Statement, TimeValue
from wikiportraits.domain.model.form import FormState, WorkflowType
from wikiportraits.domain.model.images import ImageRecord, SourceFile
from wikiportraits.domain.model.properties import Property
from wikiportraits.domain.publish import PublishDataAggregator
from wikiportraits.domain.suggestions import SuggestionContext, SuggestionEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from pathlib import Path

    from wikiportraits.config.wikimedia import WikimediaConfig
    from wikiportraits.domain.actions import PublishAction
    from wikiportraits.domain.model.event import EventDetails
    from wikiportraits.domain.model.form import PublishCounts, PublishFormData
    from wikiportraits.domain.ports.knowledge_base import KnowledgeBaseClient
    from wikiportraits.domain.ports.media_repository import MediaRepositoryClient
    from wikiportraits.domain.suggestions import Suggestion

log = getLogger(__name__)


class PublishPlanError(RuntimeError):
    """Raised when the publish actions for a session could not be computed."""


@dataclass(slots=True, frozen=True)
class PublishPlan:
    actions: list[PublishAction]
    counts: PublishCounts
    categories: list[str]


@dataclass(slots=True, frozen=True)
class ScanResult:
    records: list[ImageRecord]
    duplicates: list[DuplicateMatch]


def build_wikimedia_config() -> WikimediaConfig:
    return get_wikimedia_config(
        response_hooks=(raise_on_mediawiki_lag,),
        search_cache_predicate=should_cache_mediawiki_payload,
    )


@asynccontextmanager
async def wikimedia_clients(
    config: WikimediaConfig | None = None,
) -> AsyncIterator[tuple[WikidataClient, CommonsClient]]:
    """Open a Wikidata and a Commons client sharing one configuration."""

    effective = config or build_wikimedia_config()
    async with (
        WikidataClient(config=effective) as wikidata,
        CommonsClient(config=effective) as commons,
    ):
        yield wikidata, commons


async def plan_publish(
    form: PublishFormData,
    *,
    knowledge_base: KnowledgeBaseClient,
    media: MediaRepositoryClient,
) -> PublishPlan:
    """Run one recalculation pass over ``form`` and return the resulting actions."""

    state = FormState(data=form)
    factory = ActionBuilderFactory(knowledge_base=knowledge_base, media=media)
    aggregator = PublishDataAggregator(state, factory)
    if not await aggregator.recalculate():
        raise PublishPlanError("Could not calculate publish actions")
    log.info(
        "Planned %d publish actions (%d pending)",
        aggregator.counts.total,
        aggregator.counts.pending,
    )
    return PublishPlan(
        actions=aggregator.actions,
        counts=aggregator.counts,
        categories=list(state.computed.categories),
    )


def plan_session_file(path: Path, *, config: WikimediaConfig | None = None) -> PublishPlan:
    """Plan the publish actions for a saved session against live Wikimedia APIs."""

    form = load_session_file(path)

    async def run() -> PublishPlan:
        async with wikimedia_clients(config) as (wikidata, commons):
            return await plan_publish(form, knowledge_base=wikidata, media=commons)

    return asyncio.run(run())


async def scan_files_async(
    paths: Sequence[Path],
    *,
    existing: Sequence[Path] = (),
    workflow_type: WorkflowType = WorkflowType.GENERAL,
    event_details: EventDetails | None = None,
    author_qid: str | None = None,
) -> ScanResult:
    candidates = [SourceFile.from_path(path) for path in paths]
    existing_images = [
        ImageRecord(id=new_image_id(path.name), file=SourceFile.from_path(path))
        for path in existing
    ]
    check = detect_duplicates(candidates, existing_images)
    for match in check.duplicates:
        log.info("Skipping %s: %s", match.file.name, match.reason)

    processor = FileProcessor(
        workflow_type=workflow_type,
        exif_reader=PillowExifReader(),
        previews=InMemoryPreviewStore(),
        event_details=event_details,
        author_qid=author_qid,
    )
    records = await processor.create_image_records(check.valid)
    for record in records:
        processor.release_image_record(record)
    return ScanResult(records=records, duplicates=check.duplicates)


def scan_files(
    paths: Sequence[Path],
    *,
    existing: Sequence[Path] = (),
    workflow_type: WorkflowType = WorkflowType.GENERAL,
    event_details: EventDetails | None = None,
) -> ScanResult:
    """Check local files for duplicates and derive upload metadata for the rest."""

    return asyncio.run(
        scan_files_async(
            paths,
            existing=existing,
            workflow_type=workflow_type,
            event_details=event_details,
            author_qid=optional_env_var("WIKIPORTRAITS_AUTHOR_QID"),
        )
    )


async def event_entity(
    event: EventDetails | None,
    *,
    knowledge_base: KnowledgeBaseClient,
) -> KnowledgeBaseEntity | None:
    """The session's event as a knowledge base entity.

    A linked event is fetched; otherwise, or if the fetch fails, a pending entity is
    built from the title, date and linked participants.
    """

    if event is None or not event.title:
        return None
    if event.knowledge_base_id:
        try:
            return await knowledge_base.get_entity(
                event.knowledge_base_id, languages=(event.language,)
            )
        except Exception:  # noqa: BLE001
            log.warning(
                "Could not load event %s; using session details",
                event.knowledge_base_id,
                exc_info=True,
            )

    entity = KnowledgeBaseEntity.pending(event.title, language=event.language)
    if event.date is not None:
        entity.claims[Property.POINT_IN_TIME] = [
            Statement(property=Property.POINT_IN_TIME, value=TimeValue.from_date(event.date))
        ]
    performers = [
        Statement(property=Property.PERFORMER, value=EntityRef(p.knowledge_base_id))
        for p in event.participants
        if p.knowledge_base_id
    ]
    if performers:
        entity.claims[Property.PERFORMER] = performers
    return entity


async def suggest_related(
    form: PublishFormData,
    *,
    knowledge_base: KnowledgeBaseClient,
    engine: SuggestionEngine | None = None,
    max_results: int = 10,
) -> list[Suggestion]:
    """Suggest entities related to the session's event and selected entities."""

    event = form.event_details
    context = SuggestionContext(
        current_event=await event_entity(event, knowledge_base=knowledge_base),
        existing_entities=(*form.entities.people, *form.entities.organizations),
        workflow_type=form.workflow_type,
        max_results=max_results,
        language=event.language if event is not None else "en",
    )
    engine = engine or SuggestionEngine(knowledge_base)
    suggestions = await engine.suggest(context)
    log.info("Found %d related entities", len(suggestions))
    return suggestions


def suggest_session_file(
    path: Path,
    *,
    config: WikimediaConfig | None = None,
    max_results: int = 10,
) -> list[Suggestion]:
    form = load_session_file(path)

    async def run() -> list[Suggestion]:
        async with wikimedia_clients(config) as (wikidata, _commons):
            return await suggest_related(
                form, knowledge_base=wikidata, max_results=max_results
            )

    return asyncio.run(run())


def action_payload(action: PublishAction) -> dict[str, Any]:
    payload = asdict(action)
    payload.pop("_key", None)
    return {"key": action.key(), "kind": str(action.kind), **payload}


__all__ = [
    "PublishPlan",
    "PublishPlanError",
    "ScanResult",
    "action_payload",
    "build_wikimedia_config",
    "event_entity",
    "plan_publish",
    "plan_session_file",
    "scan_files",
    "scan_files_async",
    "suggest_related",
    "suggest_session_file",
    "wikimedia_clients",
]
