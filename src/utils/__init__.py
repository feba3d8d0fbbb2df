"""
Shared utilities for roundtrip-verify

Provides:
- logging: Console/JSON log formatting and context-carrying loggers
- tracing: OpenTelemetry span helpers
"""

__all__ = ["logging", "tracing"]
