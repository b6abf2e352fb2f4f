"""
OpenTelemetry 기반 통합 Observability
"""

from .logging_manager import (
    initialize_logging,
    shutdown_logging,
    get_tracer,
    get_meter,
    traced,
    trace_class,
    is_initialized
)
from notes_gateway.config.resources import LoggingConfig

__all__ = [
    'initialize_logging',
    'shutdown_logging',
    'get_tracer',
    'get_meter',
    'traced',
    'trace_class',
    'is_initialized',
    'LoggingConfig'
]
