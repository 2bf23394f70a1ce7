# tests/property/core/__init__.py
"""Property tests for canonical hashing and change detection.

Callers skip re-rendering when nodes_changed() says nothing changed, so a
false negative hides an edit. These tests check hashing over arbitrary JSON
and arbitrary generated graphs.
"""
