"""Main service entry point."""
import sys
import signal
import argparse
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import uvicorn
from pydantic import ValidationError

from groupledger.config.settings import AppSettings
from groupledger.orchestrator.context import AppContext
from groupledger.orchestrator.models import InboundEvent
from groupledger.extraction.processor import MessageProcessor
from groupledger.server.app import create_app
from groupledger.utils.exceptions import ConfigError
from groupledger.utils.logger import configure_logging, get_logger

logger = get_logger()
shutdown_requested = False
handling_event = False


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    global shutdown_requested
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    shutdown_requested = True
    # A message in flight finishes and persists; the loop stops before the next read
    if not handling_event:
        raise KeyboardInterrupt


def _load_settings(config_path: Optional[str]) -> AppSettings:
    """Load and validate settings, then configure logging from them."""
    settings = AppSettings.load(Path(config_path) if config_path else None)

    is_valid, message = settings.validate()
    if not is_valid:
        raise ConfigError(f"Invalid configuration: {message}")

    configure_logging(
        settings.log_level,
        settings.log_path,
        int(settings.log_max_file_size_mb),
        int(settings.log_backup_count)
    )
    return settings


def _start_status_server(context: AppContext) -> threading.Thread:
    """Serve the status API from a daemon thread."""
    settings = context.settings
    server = uvicorn.Server(uvicorn.Config(
        create_app(context),
        host=settings.server_host,
        port=int(settings.server_port),
        log_level="warning"
    ))
    thread = threading.Thread(target=server.run, name="status-server", daemon=True)
    thread.start()
    logger.info(f"Status server running on port {settings.server_port}")
    return thread


def consume_events(context: AppContext, lines: Iterable[str]) -> int:
    """
    Feed newline-delimited JSON events to the pipeline, one at a time.

    Returns:
        Number of events that produced insights
    """
    global handling_event
    processed = 0
    for line_num, line in enumerate(lines, 1):
        if shutdown_requested:
            break
        if not line.strip():
            continue

        try:
            event = InboundEvent.model_validate_json(line)
        except ValidationError as e:
            logger.warning(f"Skipping invalid event on line {line_num}: {e.error_count()} error(s)")
            continue

        handling_event = True
        try:
            if context.coordinator.handle_event(event) is not None:
                processed += 1
        finally:
            handling_event = False
        if shutdown_requested:
            break
    return processed


def run_command(settings: AppSettings, events_path: Optional[str], serve: bool) -> None:
    """Run the tracker: status server plus the transport event stream."""
    context = AppContext.from_settings(settings)

    logger.info("Starting chat spending tracker...")
    logger.info(f"   Target Group: {settings.target_conversation_id}")
    logger.info(f"   Workbook: {settings.workbook_path}")
    logger.info(f"   Spending Analysis: {'Enabled' if settings.enable_spending_analysis else 'Disabled'}")

    context.start()
    if serve:
        _start_status_server(context)

    context.connected = True
    logger.info(f"Monitoring group: {settings.target_conversation_id}")
    context.coordinator.display_spending_summary()

    try:
        if events_path and events_path != "-":
            with open(events_path, "r", encoding="utf-8") as f:
                processed = consume_events(context, f)
        else:
            processed = consume_events(context, sys.stdin)
        logger.info(f"Event stream closed after {processed} processed messages")
    finally:
        context.connected = False
        logger.info("Tracker stopped")


def summary_command(settings: AppSettings) -> None:
    """Print the current spending summary."""
    context = AppContext.from_settings(settings)
    context.start()
    context.coordinator.display_spending_summary()


def analyze_command(settings: AppSettings, text: str) -> None:
    """Dry-run extraction for one message without touching the workbook."""
    processor = MessageProcessor.from_settings(settings)
    fact = processor.process_message(text, "cli", datetime.now())
    if fact is None:
        print("✗ Message processing failed")
        return

    insights = processor.get_spending_insights(fact)
    print(f"Numbers found: [{', '.join(fact.numbers)}]")
    print(f"Items found: {len(fact.items)}")
    for item in fact.items:
        print(f"  • {item.label}: ${item.amount}")
    print(f"Spending related: {'Yes' if fact.is_spending_related else 'No'}")
    print(f"Category: {insights.category}")
    print(f"Total: ${insights.total_amount:.2f} (high value: {'Yes' if insights.is_high_value else 'No'})")


def main():
    """Main entry point for the GroupLedger service."""
    parser = argparse.ArgumentParser(description="GroupLedger chat spending tracker")
    parser.add_argument("--config", help="Path to config.yaml (default: ./config.yaml)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Process transport events (default)")
    run_parser.add_argument("--events", default="-", help="JSON-lines event file, or - for stdin")
    run_parser.add_argument("--no-server", action="store_true", help="Do not start the status server")

    subparsers.add_parser("summary", help="Print the spending summary")

    analyze_parser = subparsers.add_parser("analyze", help="Show what would be extracted from a message")
    analyze_parser.add_argument("text", help="Message text")

    args = parser.parse_args()

    try:
        settings = _load_settings(args.config)
    except ConfigError as e:
        logger.critical(str(e))
        sys.exit(1)

    if args.command == "summary":
        summary_command(settings)
        return

    if args.command == "analyze":
        analyze_command(settings, args.text)
        return

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        run_command(
            settings,
            getattr(args, "events", "-"),
            serve=not getattr(args, "no_server", False)
        )
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
