# tests/property/__init__.py
"""Property-based tests for fieldflow.

Property-based testing validates invariants that must hold for ALL graphs,
not just the handful we think of: the resolver is a fixed point after one
pass, never raises for graph content, and agrees with the replay runtime.

Test categories:
- core/: Canonical hashing and change detection
- engine/: Resolver, lookup, transform and rule-ordering properties
"""
