# tests/property/engine/__init__.py
"""Property tests for the evaluation engine.

Resolution must hold up against any graph a user can draw, including
cyclic and half-connected ones. These tests generate such graphs and check
the resolver, the compiler/replay pair, lookups, transforms and rule edits.
"""
