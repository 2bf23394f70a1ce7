# src/fieldflow/__init__.py
"""
Fieldflow: visual field-mapping graphs evaluated into transformed records.

A mapping graph wires source schema fields through lookup tables and
transforms into target schema fields. The engine resolves target values
from sample records and compiles the graph into replayable execution steps.
"""

__version__ = "0.3.0"
