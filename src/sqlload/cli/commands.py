"""
CLI command implementations.

This module contains the implementation of the two CLI commands:
- run: One load test against the configured store
- report: Re-render a summary saved by a previous run
"""

import argparse
import json
import logging
import sys

from sqlload import __version__
from sqlload.config import ConfigurationError, load_config
from sqlload.engine import run_load
from sqlload.report import export_summary_json, format_summary_console, load_summary_json
from sqlload.store import StoreError, open_store
from sqlload.utils.metrics import initialize_metrics
from sqlload.utils.tracing import initialize_tracing, shutdown_tracing

logger = logging.getLogger(__name__)


def _start_observability(args: argparse.Namespace) -> None:
    if args.metrics_port is not None:
        try:
            initialize_metrics(port=args.metrics_port, version=__version__)
        except RuntimeError as e:
            logger.error(f"Failed to start metrics server: {e}")
            sys.exit(1)

    if args.trace_console or args.otlp_endpoint:
        initialize_tracing(
            service_name="sqlload",
            otlp_endpoint=args.otlp_endpoint,
            console_export=args.trace_console,
        )


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run one load test

    Args:
        args: Parsed command-line arguments
    """
    try:
        config = load_config(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logger.info("Starting load run", extra=config.to_log_fields())
    _start_observability(args)

    try:
        store = open_store(
            config.database_url,
            max_open_connections=config.max_open_connections,
            max_idle_connections=config.max_idle_connections,
            connection_lifetime=config.connection_lifetime,
            acquire_timeout=config.acquire_timeout,
        )
    except StoreError as e:
        logger.error(f"Failed to open store: {e}")
        shutdown_tracing()
        sys.exit(1)

    try:
        load_run = run_load(config, store, migrate=not args.no_migrate)
    except StoreError as e:
        logger.error(f"Load run aborted: {e}")
        sys.exit(1)
    finally:
        store.close()
        shutdown_tracing()

    report = load_run.to_dict()

    if args.output:
        export_summary_json(report, args.output)
        logger.info(f"Summary exported to {args.output}")

    if args.format == "console":
        print(format_summary_console(report))
    else:
        print(json.dumps(report, indent=2))


def cmd_report(args: argparse.Namespace) -> None:
    """
    Render a summary saved by `run --output`

    Args:
        args: Parsed command-line arguments
    """
    logger.info(f"Loading run summary from {args.input}")

    try:
        summary = load_summary_json(args.input)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load summary: {e}")
        sys.exit(1)

    if args.format == "console":
        print(format_summary_console(summary))
    elif args.format == "json":
        if not args.output:
            logger.error("Output file required for JSON format")
            sys.exit(1)
        export_summary_json(summary, args.output)
        logger.info(f"Summary exported to {args.output}")
