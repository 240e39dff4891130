# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from wikiportraits.app import action_payload, plan_session_file, scan_files, suggest_session_file
from wikiportraits.config import ConfigurationError, configure_logging
from wikiportraits.domain.actions import (
    CategoryAction,
    ImageAction,
    KnowledgeBaseAction,
    StructuredDataAction,
)
from wikiportraits.domain.duplicates import duplicate_message
from wikiportraits.domain.model.event import EventDetails, EventKind
from wikiportraits.domain.model.form import WorkflowType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from wikiportraits.app import PublishPlan, ScanResult
    from wikiportraits.domain.actions import PublishAction
    from wikiportraits.domain.suggestions import Suggestion

log = logging.getLogger(__name__)

IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".tif", ".tiff", ".webp"})


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plan WikiPortraits publishing")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser("plan", help="Compute the publish actions for a session file")
    plan.add_argument("session", type=Path, help="JSON session file")
    plan.add_argument(
        "--json",
        action="store_true",
        help="Print the actions as JSON instead of a summary",
    )

    scan = subparsers.add_parser("scan", help="Check local files and derive upload metadata")
    scan.add_argument("files", type=Path, nargs="+", help="Image files to add to the queue")
    scan.add_argument(
        "--existing",
        type=Path,
        help="Directory of files already in the session, used for duplicate checks",
    )
    scan.add_argument(
        "--workflow",
        type=WorkflowType,
        choices=list(WorkflowType),
        default=WorkflowType.GENERAL,
        help="Workflow type (default: %(default)s)",
    )
    scan.add_argument("--event-title", help="Event the files were taken at")
    scan.add_argument(
        "--event-date",
        type=date.fromisoformat,
        help="Event date as YYYY-MM-DD",
    )
    scan.add_argument(
        "--event-kind",
        type=EventKind,
        choices=list(EventKind),
        default=EventKind.GENERIC,
        help="Event kind (default: %(default)s)",
    )

    suggest = subparsers.add_parser(
        "suggest", help="Suggest entities related to a session's event"
    )
    suggest.add_argument("session", type=Path, help="JSON session file")
    suggest.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of suggestions (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _existing_files(directory: Path | None) -> list[Path]:
    if directory is None:
        return []
    if not directory.is_dir():
        raise ValueError(f"Not a directory: {directory}")
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
    )


def _event_details(args: argparse.Namespace) -> EventDetails | None:
    if not args.event_title:
        if args.event_date is not None:
            raise ValueError("--event-date needs --event-title")
        return None
    return EventDetails(title=args.event_title, date=args.event_date, kind=args.event_kind)


def _describe(action: PublishAction) -> str:
    match action:
        case CategoryAction(category_name=name, should_create=create):
            detail = f"Category:{name}" + (" (create)" if create else "")
        case KnowledgeBaseAction(entity_id=entity_id, entity_label=label, changes=changes):
            properties = ", ".join(change.property for change in changes)
            detail = f"{action.operation} {label} [{entity_id}] {properties}".rstrip()
        case ImageAction(filename=filename):
            detail = f"{action.operation} {filename}"
        case StructuredDataAction(image_id=image_id, properties=properties):
            names = ", ".join(prop.property for prop in properties if prop.needs_update)
            detail = f"{image_id}: {names}"
        case _:
            detail = ""
    return f"[{action.status:<11}] {action.kind:<15} {detail}"


def _print_plan(plan: PublishPlan, *, as_json: bool) -> None:
    if as_json:
        payload = {
            "actions": [action_payload(action) for action in plan.actions],
            "counts": {
                "total": plan.counts.total,
                "pending": plan.counts.pending,
                "completed": plan.counts.completed,
                "error": plan.counts.error,
            },
            "categories": plan.categories,
        }
        print(json.dumps(payload, indent=2, default=str))
        return
    for action in plan.actions:
        print(_describe(action))
    counts = plan.counts
    print(
        f"{counts.total} actions: {counts.pending} pending, "
        f"{counts.completed} completed, {counts.error} failed"
    )


def _print_scan(result: ScanResult) -> None:
    for record in result.records:
        metadata = record.metadata
        source = "EXIF" if metadata.date_from_exif else "today"
        print(f"{record.display_filename}: {metadata.date} ({source})")
        if metadata.gps is not None:
            print(f"  GPS {metadata.gps.latitude}, {metadata.gps.longitude}")
        print(f"  {metadata.description}")
    for match in result.duplicates:
        print(f"{match.file.name}: {duplicate_message(match)}")


def _print_suggestions(suggestions: Sequence[Suggestion]) -> None:
    if not suggestions:
        print("No related entities found")
    for suggestion in suggestions:
        entity = suggestion.entity
        label = entity.label(default=entity.id)
        print(
            f"{suggestion.confidence:.2f} {suggestion.relationship:<9} {label} [{entity.id}]: "
            f"{suggestion.reasoning}"
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        scanning = parsed_args.command == "scan"
        existing = _existing_files(parsed_args.existing) if scanning else []
        event_details = _event_details(parsed_args) if scanning else None
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "plan":
            plan = plan_session_file(parsed_args.session)
            _print_plan(plan, as_json=parsed_args.json)
        elif parsed_args.command == "scan":
            result = scan_files(
                parsed_args.files,
                existing=existing,
                workflow_type=parsed_args.workflow,
                event_details=event_details,
            )
            _print_scan(result)
        elif parsed_args.command == "suggest":
            suggestions = suggest_session_file(parsed_args.session, max_results=parsed_args.limit)
            _print_suggestions(suggestions)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except (ConfigurationError, ValueError):
        log.exception("Invalid session or configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
