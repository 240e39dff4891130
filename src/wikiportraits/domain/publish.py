"""Publish-data aggregator.

The aggregator owns the action list for one publishing session. It re-runs the
workflow's action builder whenever the dependency key of the form changes, keeps
operator-added categories across passes, and is the only place that changes an
action's status.
"""

from __future__ import annotations

import hashlib
import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

from wikiportraits.domain.action_builders.contracts import BuilderContext, BuiltActions, build_all
from wikiportraits.domain.actions import (
    ActionStatus,
    CategoryAction,
    ImageAction,
    KnowledgeBaseAction,
    StructuredDataAction,
    UnknownActionError,
    count_actions,
)
from wikiportraits.domain.model.images import OriginalImageState

if TYPE_CHECKING:
    from collections.abc import Callable

    from wikiportraits.domain.action_builders import ActionBuilderFactory
    from wikiportraits.domain.actions import PublishAction
    from wikiportraits.domain.model.form import FormState, PublishCounts, PublishFormData
    from wikiportraits.domain.model.images import ImageRecord
    from wikiportraits.domain.ports.media_repository import MediaRepositoryClient

    type ChangeListener = Callable[[PublishDataAggregator], None]

log = getLogger(__name__)


def _image_fingerprint(image: ImageRecord) -> dict[str, Any]:
    metadata = image.metadata
    return {
        "id": image.id,
        "page": image.commons_page_id,
        "filename": image.display_filename,
        "main": metadata.set_as_main_image,
        "wikitext_modified": metadata.wikitext_modified,
        "wikitext": hashlib.sha256(metadata.wikitext.encode()).hexdigest()[:16],
        "members": list(metadata.selected_band_members),
        "captions": [f"{c.language}:{c.text}" for c in metadata.captions],
        "categories": list(metadata.categories),
        "description": metadata.description,
        "date": metadata.date.isoformat() if metadata.date else None,
        "gps": [metadata.gps.latitude, metadata.gps.longitude] if metadata.gps else None,
    }


def dependency_key(data: PublishFormData) -> str:
    """Stable serialisation of every form field the builders read."""

    event = data.event_details
    payload: dict[str, Any] = {
        "workflow": str(data.workflow_type),
        "event": None,
        "queue": [_image_fingerprint(image) for image in data.files.queue],
        "existing": [_image_fingerprint(image) for image in data.files.existing],
        "organizations": [
            [entity.id, entity.label("en")] for entity in data.entities.organizations
        ],
        "people": [entity.id for entity in data.entities.people],
    }
    if event is not None:
        payload["event"] = {
            "title": event.title,
            "date": event.date.isoformat() if event.date else None,
            "category": event.commons_category,
            "kb_id": event.knowledge_base_id,
            "kind": str(event.kind),
            "places": [event.location, event.venue, event.city, event.country, event.tour],
            "participants": [
                [p.name, str(p.kind), p.commons_category, p.knowledge_base_id, p.wikipedia_url]
                for p in event.participants
            ],
            "category_exists": event.category_exists,
            "concerts": event.add_to_concerts_category,
        }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class PublishDataAggregator:
    def __init__(
        self,
        form_state: FormState,
        builder_factory: ActionBuilderFactory,
        *,
        media: MediaRepositoryClient | None = None,
        context: BuilderContext | None = None,
    ) -> None:
        self.form_state = form_state
        self.builder_factory = builder_factory
        self.media = media if media is not None else builder_factory.media
        self.context = context if context is not None else BuilderContext()
        self._actions: list[PublishAction] = []
        self._manual_categories: dict[str, CategoryAction] = {}
        self._removed_categories: set[str] = set()
        self._listeners: list[ChangeListener] = []
        self._calculating = False
        self._generation = 0
        self._last_key: str | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def actions(self) -> list[PublishAction]:
        return list(self._actions)

    @property
    def categories(self) -> list[CategoryAction]:
        return [a for a in self._actions if isinstance(a, CategoryAction)]

    @property
    def knowledge_base_actions(self) -> list[KnowledgeBaseAction]:
        return [a for a in self._actions if isinstance(a, KnowledgeBaseAction)]

    @property
    def image_actions(self) -> list[ImageAction]:
        return [a for a in self._actions if isinstance(a, ImageAction)]

    @property
    def structured_data_actions(self) -> list[StructuredDataAction]:
        return [a for a in self._actions if isinstance(a, StructuredDataAction)]

    @property
    def counts(self) -> PublishCounts:
        return count_actions(self._actions)

    @property
    def is_calculating(self) -> bool:
        return self._calculating

    @property
    def generation(self) -> int:
        return self._generation

    def find(self, key: str) -> PublishAction | None:
        return next((action for action in self._actions if action.key() == key), None)

    def dependency_key(self) -> str:
        return dependency_key(self.form_state.data)

    # ------------------------------------------------------------------
    # Recalculation
    # ------------------------------------------------------------------

    async def recalculate(self, *, force: bool = False) -> bool:
        """Rebuild the action list if the dependency key changed.

        Returns ``True`` when the list was replaced. A call made while another pass is
        running is dropped. A failed pass keeps the previous list.
        """

        if self._calculating:
            log.debug("Recalculation already running; skipping trigger")
            return False
        key = self.dependency_key()
        if not force and key == self._last_key:
            return False

        data = self.form_state.data
        if not _has_inputs(data):
            self._replace(BuiltActions(), key)
            return True

        self._calculating = True
        generation = self._generation
        try:
            builder = self.builder_factory.get(data.workflow_type)
            built = await build_all(builder, data, self.context)
        except Exception:
            log.exception("Could not calculate publish actions")
            return False
        finally:
            self._calculating = False

        if generation != self._generation:
            log.info("Discarding publish actions calculated before a refresh")
            return False
        self._replace(built, key)
        log.debug("Calculated %d publish actions", len(self._actions))
        return True

    def refresh(self) -> None:
        """Drop every derived action; the next pass recalculates from scratch."""

        self._generation += 1
        self._last_key = None
        self._actions = list(self._manual_categories.values())
        self._changed()

    def _replace(self, built: BuiltActions, key: str) -> None:
        categories = [
            action
            for action in built.categories
            if action.category_name not in self._removed_categories
        ]
        derived = {action.category_name for action in categories}
        manual = [
            action for name, action in self._manual_categories.items() if name not in derived
        ]
        self._actions = [
            *categories,
            *manual,
            *built.knowledge_base,
            *built.images,
            *built.structured_data,
        ]
        self._last_key = key
        self._changed()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_category(self, name: str) -> CategoryAction | None:
        name = name.strip()
        if not name or any(action.category_name == name for action in self.categories):
            return None
        self._removed_categories.discard(name)
        action = CategoryAction(
            category_name=name,
            exists=False,
            should_create=True,
            manual=True,
        )
        self._manual_categories[name] = action
        self._actions.append(action)
        self._changed()
        return action

    def remove_category(self, name: str) -> bool:
        before = len(self._actions)
        self._actions = [
            action
            for action in self._actions
            if not (isinstance(action, CategoryAction) and action.category_name == name)
        ]
        self._manual_categories.pop(name, None)
        self._removed_categories.add(name)
        removed = len(self._actions) != before
        if removed:
            self._changed()
        return removed

    def update_action_status(
        self,
        key: str,
        status: ActionStatus,
        error: str | None = None,
    ) -> PublishAction:
        """Move the action identified by ``key`` to ``status``.

        Completing a structured-data action commits the image's current metadata as
        its original state, so the next pass sees no difference for that image.
        """

        action = self.find(key)
        if action is None:
            raise UnknownActionError(f"No publish action with key {key!r}")
        action.transition(status, error)

        if status is ActionStatus.COMPLETED and isinstance(action, StructuredDataAction):
            image = self.form_state.data.files.find_existing(action.image_id)
            if image is not None:
                self.context.freeze(image)
        if status is ActionStatus.ERROR:
            log.warning("Publish action %s failed: %s", key, error)

        self._changed()
        return action

    def update_structured_data_page_id(self, image_id: str, page_id: int) -> bool:
        updated = False
        for action in self.structured_data_actions:
            if action.image_id == image_id:
                action.commons_page_id = page_id
                updated = True
        if updated:
            self._changed()
        return updated

    async def reload_image_from_repository(self, image_id: str) -> bool:
        """Replace an existing image's original state with what Commons currently has."""

        image = self.form_state.data.files.find_existing(image_id)
        if image is None or image.commons_page_id is None:
            return False
        try:
            snapshot = await self.media.get_structured_data(image.commons_page_id)
            title = f"File:{image.filename or image.display_filename}"
            wikitext = await self.media.get_page_body(title)
        except Exception:
            log.exception("Could not reload %s from Commons", image.display_filename)
            return False

        organization = self.form_state.data.primary_organization
        members = tuple(
            qid for qid in snapshot.depicts if organization is None or qid != organization.id
        )
        self.context.original_states[image_id] = OriginalImageState(
            wikitext=wikitext or "",
            selected_band_members=members,
            captions=snapshot.captions,
        )
        log.info("Reloaded %s from Commons", image.display_filename)
        await self.recalculate(force=True)
        return True

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        computed = self.form_state.computed
        computed.categories = sorted(action.category_name for action in self.categories)
        computed.publish = self.counts
        for listener in list(self._listeners):
            listener(self)


def _has_inputs(data: PublishFormData) -> bool:
    event = data.event_details
    return bool((event is not None and event.title) or data.files.queue or data.files.existing)


__all__ = ["PublishDataAggregator", "dependency_key"]
