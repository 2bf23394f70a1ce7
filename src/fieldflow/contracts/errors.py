"""Exceptions raised at trust boundaries.

The engine itself never raises for problems inside a graph: missing nodes,
unresolvable handles, cycles and bad transform input all degrade to a skipped
edge, "no value", or a visible sentinel string. The exceptions below are for
the places where a caller hands us an external document or asks for an
explicit edit that cannot be honoured.
"""


class FieldflowError(Exception):
    """Base class for all fieldflow exceptions."""

    pass


class GraphDocumentError(FieldflowError):
    """Raised when a node/edge document fails validation.

    Wraps the pydantic ValidationError so callers only need one except clause
    for "this JSON is not a mapping graph".
    """

    pass


class ConfigurationImportError(FieldflowError):
    """Raised when a MappingConfiguration document cannot be imported."""

    pass


class GraphEditError(FieldflowError):
    """Raised when an explicit graph edit is impossible.

    Examples: connecting a node that does not exist, adding a node whose id
    is already taken, removing an unknown edge.
    """

    pass


class SymbolResolutionError(GraphEditError):
    """Raised when a batch edit references a symbol that was never stored.

    Attributes:
        symbol: The unresolved reference, including its "$" prefix
        action_index: Position of the offending action in the batch
    """

    def __init__(self, symbol: str, action_index: int) -> None:
        self.symbol = symbol
        self.action_index = action_index
        super().__init__(f"Unknown symbol {symbol!r} referenced by action #{action_index}")
