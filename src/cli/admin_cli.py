"""
Admin CLI for the movement pipeline.

Usage:
    python -m src.cli.admin_cli classify <location_id> [<location_id> ...]
    python -m src.cli.admin_cli process-file --file <movements.json> [--show-valid]
    python -m src.cli.admin_cli backfill --start-date YYYY-MM-DD --end-date YYYY-MM-DD
    python -m src.cli.admin_cli movement-stats
    python -m src.cli.admin_cli purge-historical --before YYYY-MM-DD [--yes]
"""

import argparse
import json
import sys
from datetime import datetime, time, timezone

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from src.config import load_settings
from src.core.locations import create_location_classifier
from src.core.models import DataSource, RawMovement
from src.core.movements import create_movement_processor
from src.cutover import CutoverOrchestrator, HistoricalMovementClient
from src.ingestion import ConsumerRegistry, IngestionController
from src.observability.logger import get_logger
from src.utils.validation import (
    InputValidationError,
    parse_date,
    validate_date_range,
    validate_file_path,
    validate_location_id,
)
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.movement_store import PostgresMovementStore
from src.warehouse.schema_mgmt import MovementSchemaManager

logger = get_logger(__name__)


def classify_command(args):
    """
    Classify location ids with the configured classifier.

    Args:
        args: Command line arguments
    """
    settings = load_settings(args.config)
    classifier = create_location_classifier(settings.location)

    print(f"\n{'Location':<12} {'Type':<10}")
    print(f"{'-' * 22}")
    for raw_id in args.location_ids:
        location_id = validate_location_id(raw_id)
        print(f"{location_id:<12} {classifier.classify(location_id).value:<10}")
    print()


def process_file_command(args):
    """
    Resolve and validate movements from a JSON file (no database writes).

    The file holds a JSON array of movements in the feed's camelCase format.

    Args:
        args: Command line arguments
    """
    path = validate_file_path(args.file)
    settings = load_settings(args.config)
    processor = create_movement_processor(settings)

    with open(path) as f:
        payload = json.load(f)

    if not isinstance(payload, list):
        raise InputValidationError(f"{path} must contain a JSON array of movements")

    raws = []
    for index, item in enumerate(payload):
        try:
            raws.append(RawMovement.model_validate(item))
        except PydanticValidationError as e:
            print(f"Skipping movement #{index}: {e.error_count()} invalid field(s)")

    processed = processor.process_batch(raws, DataSource.HISTORICAL_API)

    print(f"\n{'=' * 80}")
    print(f"MOVEMENTS IN {path}")
    print(f"{'=' * 80}\n")

    for item in processed:
        if item.validation.valid and not args.show_valid:
            continue
        record = item.record
        print(f"{record.movement_direction_display():<40} {item.validation.code}")
        if item.validation.message:
            print(f"    {item.validation.message}")

    summary = processor.validator.get_validation_summary([p.validation for p in processed])
    reverse_count = sum(1 for p in processed if p.resolved.is_reverse)

    print(f"\nTotal movements: {summary.total_validated}")
    print(f"  Reverse:       {reverse_count}")
    print(f"  Valid:         {summary.valid_count}")
    print(f"  Invalid:       {summary.invalid_count}")
    print(f"  Valid rate:    {summary.validation_rate:.1f}%")
    print()


def backfill_command(args):
    """
    Fetch and store a historical window without touching live ingestion.

    Args:
        args: Command line arguments
    """
    start_date, end_date = validate_date_range(
        parse_date(args.start_date, "start-date"),
        parse_date(args.end_date, "end-date"),
    )
    settings = load_settings(args.config)
    if not settings.cutover.base_url:
        raise InputValidationError("cutover.base_url (HISTORICAL_API_BASE_URL) is not configured")

    logger.info(f"Backfilling historical movements from {start_date} to {end_date}")

    pool = DatabaseConnectionPool.from_settings(settings.database)
    try:
        pool.open()
        MovementSchemaManager(pool).ensure_schema()
        store = PostgresMovementStore(pool)
        processor = create_movement_processor(settings)

        with HistoricalMovementClient.from_settings(settings.cutover) as client:
            # No live units: the controller only satisfies the orchestrator's wiring
            orchestrator = CutoverOrchestrator(
                IngestionController(ConsumerRegistry()),
                client,
                processor,
                store,
                settings.cutover,
            )
            results = orchestrator.fetch_window(start_date, end_date)

        raws = [movement for r in results if r.ok for movement in r.records]
        failed = sorted(r.fetch_date.isoformat() for r in results if not r.ok)
        stored, validations = orchestrator.store_records(raws)
        summary = processor.validator.get_validation_summary(validations)

        output = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "records_fetched": len(raws),
            "records_stored": stored,
            "failed_dates": failed,
            "validation": summary.model_dump(),
        }
        print(json.dumps(output, indent=2))

        if failed:
            sys.exit(2)

    finally:
        pool.close()


def movement_stats_command(args):
    """
    Display record store statistics.

    Args:
        args: Command line arguments
    """
    settings = load_settings(args.config)
    pool = DatabaseConnectionPool.from_settings(settings.database)
    try:
        pool.open()
        store = PostgresMovementStore(pool)
        stats = store.get_movement_statistics()
        historical_cutover = store.count_historical_cutover_records()

        print(f"\n{'=' * 40}")
        print("MOVEMENT STATISTICS")
        print(f"{'=' * 40}\n")
        print(f"Total movements:             {stats.total}")
        print(f"Historical:                  {stats.historical}")
        print(f"Processed during cutover:    {stats.cutover}")
        print(f"Historical + cutover:        {historical_cutover}")
        print()

    finally:
        pool.close()


def purge_historical_command(args):
    """
    Delete historical records older than a date.

    Args:
        args: Command line arguments
    """
    before = parse_date(args.before, "before")
    cutoff = datetime.combine(before, time.min, tzinfo=timezone.utc)

    if not args.yes:
        answer = input(f"Delete all historical movements before {cutoff.isoformat()}? [y/N] ")
        if answer.strip().lower() != "y":
            print("Aborted")
            return

    settings = load_settings(args.config)
    pool = DatabaseConnectionPool.from_settings(settings.database)
    try:
        pool.open()
        deleted = PostgresMovementStore(pool).delete_old_historical_records(cutoff)
        print(f"\nDeleted {deleted} historical movement(s) older than {cutoff.isoformat()}\n")
    finally:
        pool.close()


def main():
    """Main entry point for admin CLI."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Admin CLI for the movement pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--config",
        help="Path to pipeline configuration (default: $PIPELINE_CONFIG or config/pipeline.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify location ids as STORE, DC or UNKNOWN"
    )
    classify_parser.add_argument(
        "location_ids",
        nargs="+",
        help="Location ids to classify"
    )

    process_parser = subparsers.add_parser(
        "process-file",
        help="Resolve and validate movements from a JSON file"
    )
    process_parser.add_argument(
        "--file",
        required=True,
        help="JSON file containing an array of movements"
    )
    process_parser.add_argument(
        "--show-valid",
        action="store_true",
        help="Also list movements that passed validation"
    )

    backfill_parser = subparsers.add_parser(
        "backfill",
        help="Fetch and store a historical date window"
    )
    backfill_parser.add_argument(
        "--start-date",
        required=True,
        help="First date to fetch (YYYY-MM-DD, inclusive)"
    )
    backfill_parser.add_argument(
        "--end-date",
        required=True,
        help="Date to stop at (YYYY-MM-DD, exclusive)"
    )

    subparsers.add_parser(
        "movement-stats",
        help="Display record store statistics"
    )

    purge_parser = subparsers.add_parser(
        "purge-historical",
        help="Delete historical movements older than a date"
    )
    purge_parser.add_argument(
        "--before",
        required=True,
        help="Cutoff date (YYYY-MM-DD); older historical movements are deleted"
    )
    purge_parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "classify":
            classify_command(args)
        elif args.command == "process-file":
            process_file_command(args)
        elif args.command == "backfill":
            backfill_command(args)
        elif args.command == "movement-stats":
            movement_stats_command(args)
        elif args.command == "purge-historical":
            purge_historical_command(args)
        else:
            parser.print_help()
            sys.exit(1)

    except InputValidationError as e:
        print(f"\nInvalid input: {e}", file=sys.stderr)
        sys.exit(2)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Error running {args.command}: {e}", exc_info=True)
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
