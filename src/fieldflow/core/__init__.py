# src/fieldflow/core/__init__.py
"""Core infrastructure: Canonical, Configuration, Graph, Logging."""

from fieldflow.core.canonical import (
    CANONICAL_VERSION,
    canonical_json,
    graph_fingerprint,
    nodes_changed,
    stable_hash,
)
from fieldflow.core.config import (
    EngineSettings,
    ExportSettings,
    FieldflowSettings,
    LoggingSettings,
    load_settings,
)
from fieldflow.core.graph import MappingGraph
from fieldflow.core.logging import configure_logging, get_logger

__all__ = [
    "CANONICAL_VERSION",
    "EngineSettings",
    "ExportSettings",
    "FieldflowSettings",
    "LoggingSettings",
    "MappingGraph",
    "canonical_json",
    "configure_logging",
    "get_logger",
    "graph_fingerprint",
    "load_settings",
    "nodes_changed",
    "stable_hash",
]
