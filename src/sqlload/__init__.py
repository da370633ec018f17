"""
Rate-controlled transactional load generator for relational databases

Drives a fixed-rate stream of small transactions against a shared account row,
measures per-phase latency of every transaction and reports throughput and
timing statistics at the end of a fixed-duration run.

Components:
- engine: scheduler, dispatcher, workers, latency aggregation, run control
- store: PostgreSQL and SQLite backends behind a common interface
- cli: `sqlload run` / `sqlload report`
- report: summary rendering

Usage:
    from sqlload.config import LoadConfig
    from sqlload.engine import run_load
"""

__version__ = "1.0.0"
__all__ = ["config", "engine", "store", "report"]
