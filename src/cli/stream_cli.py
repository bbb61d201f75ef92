"""
CLI for running the live movement pipeline.

Starts one streaming unit per configured Kafka topic, runs the startup
cutover (when enabled) and keeps consuming until SIGINT/SIGTERM.

Usage:
    python -m src.cli.stream_cli start [--config config/pipeline.yaml] [--metrics-port 8000]
    python -m src.cli.stream_cli status [--config config/pipeline.yaml]
"""

import argparse
import json
import signal
import sys
import time

from dotenv import load_dotenv
from pyspark.sql import SparkSession

from src.config import load_settings
from src.core.locations import create_location_classifier
from src.core.movements import create_movement_processor
from src.cutover import CutoverOrchestrator, HistoricalMovementClient
from src.ingestion import ConsumerRegistry, IngestionController
from src.observability.logger import get_logger
from src.observability.metrics import start_metrics_server
from src.streaming.pipeline import create_stream_unit
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.movement_store import PostgresMovementStore
from src.warehouse.schema_mgmt import MovementSchemaManager

logger = get_logger(__name__)

# Global flag for graceful shutdown
_shutdown_requested = False


def signal_handler(signum, frame):  # type: ignore[no-untyped-def]
    """
    Handle shutdown signals (SIGINT, SIGTERM) for graceful termination.

    Args:
        signum: Signal number
        frame: Current stack frame
    """
    global _shutdown_requested
    signal_name = signal.Signals(signum).name
    logger.info(f"Received {signal_name} signal, initiating graceful shutdown...")
    _shutdown_requested = True


def create_spark_session(app_name: str = "MovementPipeline") -> SparkSession:
    """
    Create Spark session for streaming.

    Args:
        app_name: Application name

    Returns:
        Configured SparkSession
    """
    return (
        SparkSession.builder
        .appName(app_name)
        .config("spark.sql.shuffle.partitions", "4")
        .getOrCreate()
    )


def start_pipeline(args: argparse.Namespace) -> int:
    """
    Start the live pipeline with graceful shutdown support.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    global _shutdown_requested

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    pool = None
    registry = ConsumerRegistry()

    try:
        settings = load_settings(args.config)

        if args.metrics_port:
            start_metrics_server(args.metrics_port)
            logger.info(f"Metrics exposed on port {args.metrics_port}")

        pool = DatabaseConnectionPool.from_settings(settings.database)
        pool.open()
        MovementSchemaManager(pool).ensure_schema()
        store = PostgresMovementStore(pool)

        classifier = create_location_classifier(settings.location)
        processor = create_movement_processor(settings, classifier=classifier)

        spark = create_spark_session()
        for topic in settings.kafka.topics:
            registry.register(create_stream_unit(spark, topic, settings.kafka, processor, store))

        controller = IngestionController(registry)
        for unit in registry.units():
            unit.start()

        print(json.dumps({"status": "started", "units": registry.unit_ids()}, indent=2))

        if settings.cutover.enabled:
            with HistoricalMovementClient.from_settings(settings.cutover) as client:
                orchestrator = CutoverOrchestrator(controller, client, processor, store, settings.cutover)
                run = orchestrator.run_on_startup()
            if run is not None:
                print(run.model_dump_json(indent=2))
        else:
            logger.info("Normal startup mode. Skipping historical data processing.")

        logger.info("Consuming live movements (press Ctrl+C to stop)...")
        while not _shutdown_requested and controller.status().total > 0:
            time.sleep(1)

        return 0

    except Exception as e:
        logger.error(f"Failed to run movement pipeline: {e}", exc_info=True)
        print(json.dumps({"status": "error", "error": str(e)}), file=sys.stderr)
        return 1

    finally:
        for unit in registry.units():
            try:
                unit.stop()
            except Exception as e:
                logger.warning(f"Error stopping unit {unit.unit_id}: {e}")
        if pool is not None:
            pool.close()
        logger.info("Shutdown complete")


def show_status(args: argparse.Namespace) -> int:
    """
    Show the configured topics and the streaming queries active in this Spark session.

    Returns:
        Exit code (0 for success)
    """
    try:
        settings = load_settings(args.config)
        spark = create_spark_session("MovementPipelineStatus")

        active = {q.name: q for q in spark.streams.active}
        units = []
        for topic in settings.kafka.topics:
            query = active.get(f"movements_{topic}")
            units.append({
                "unit_id": topic,
                "running": query is not None and query.isActive,
            })

        running = sum(1 for u in units if u["running"])
        output = {
            "total": len(units),
            "running": running,
            "paused": len(units) - running,
            "units": units,
        }
        print(json.dumps(output, indent=2))
        return 0

    except Exception as e:
        logger.error(f"Failed to get pipeline status: {e}", exc_info=True)
        print(json.dumps({"status": "error", "error": str(e)}), file=sys.stderr)
        return 1


def main():
    """Main entry point for stream CLI."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Run the live movement classification pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with the default configuration
  %(prog)s start

  # Start with a custom configuration and a metrics endpoint
  %(prog)s start --config /etc/movements/pipeline.yaml --metrics-port 8000

  # Show unit status
  %(prog)s status
        """
    )
    parser.add_argument(
        "--config",
        help="Path to pipeline configuration (default: $PIPELINE_CONFIG or config/pipeline.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    start_parser = subparsers.add_parser("start", help="Start the live pipeline")
    start_parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port (optional)"
    )

    subparsers.add_parser("status", help="Show stream unit status")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "start":
        return start_pipeline(args)
    elif args.command == "status":
        return show_status(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
