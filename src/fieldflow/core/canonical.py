# src/fieldflow/core/canonical.py
"""
Canonical JSON serialization for change detection.

Two-phase approach:
1. Normalize: graph models and tuples become plain JSON primitives (our code)
2. Serialize: deterministic JSON per RFC 8785/JCS (rfc8785 package)

Callers of the resolver use nodes_changed() to decide whether a recomputed
node collection differs from the one they already render. Comparing hashes
of canonical JSON ignores key order and the tuple/list distinction.

NaN and Infinity are rejected by rfc8785; node data is JSON from the editor
and never contains them.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from typing import Any

import rfc8785
from pydantic import BaseModel

from fieldflow.contracts.graph import Edge, Node

# Version string exported next to every graph fingerprint
CANONICAL_VERSION = "sha256-rfc8785-v1"


def _normalize_for_canonical(data: Any) -> Any:
    """Recursively convert models, tuples and dict keys to JSON-safe primitives."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, dict):
        return {str(k): _normalize_for_canonical(v) for k, v in data.items()}
    if isinstance(data, list | tuple):
        return [_normalize_for_canonical(v) for v in data]
    return data


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON for hashing.

    Args:
        obj: Data structure or pydantic model to serialize

    Returns:
        Canonical JSON string (no whitespace, sorted keys)

    Raises:
        rfc8785.CanonicalizationError: If data contains non-finite floats
        or values that cannot be serialized
    """
    normalized = _normalize_for_canonical(obj)
    result: bytes = rfc8785.dumps(normalized)
    return result.decode("utf-8")


def stable_hash(obj: Any, version: str = CANONICAL_VERSION) -> str:
    """Compute stable hash of object.

    Args:
        obj: Data structure to hash
        version: Hash algorithm version

    Returns:
        SHA-256 hex digest of canonical JSON
    """
    canonical = canonical_json(obj)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def graph_fingerprint(nodes: Sequence[Node], edges: Sequence[Edge]) -> str:
    """Hash of a whole graph, ignoring canvas positions."""
    topology = {
        "nodes": [node.model_dump(mode="json", by_alias=True, exclude={"position"}) for node in nodes],
        "edges": [edge.to_wire() for edge in edges],
    }
    return stable_hash(topology)


def nodes_changed(before: Sequence[Node], after: Sequence[Node]) -> bool:
    """True when two node collections differ in content.

    Identity is checked first: the resolver returns unchanged nodes as the
    same objects, so the common no-op case never serializes anything.
    """
    if len(before) != len(after):
        return True
    for old, new in zip(before, after, strict=True):
        if old is new:
            continue
        if stable_hash(old) != stable_hash(new):
            return True
    return False
