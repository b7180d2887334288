"""
Utility modules for dbunit

Provides:
- logging: Structured logging configuration
- tracing: OpenTelemetry spans for load/verify operations
- metrics: Prometheus counters and histograms
- sql_safety: Identifier validation for generated SQL
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing", "metrics", "sql_safety"]
