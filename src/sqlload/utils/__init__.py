"""
Utility modules for the load generator

Provides:
- db_pool: thread-safe database connection pools
- logging: structured logging setup
- metrics: Prometheus metrics publishing
- tracing: OpenTelemetry spans
"""

__version__ = "1.0.0"
__all__ = ["db_pool", "logging", "metrics", "tracing"]
