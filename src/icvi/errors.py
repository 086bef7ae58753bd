"""
Exception hierarchy for icvi.

Only caller-contract violations are raised as exceptions. Expected stream
states (fewer than two clusters, coincident centroids) are reported through
``criterion_value`` / ``degenerate`` on the index instead.
"""


class CVIError(Exception):
    """Base class for all icvi errors."""


class DimensionMismatchError(CVIError, ValueError):
    """A sample's length disagrees with the instance's established dimension."""

    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(f"Expected sample of dimension {expected}, got {got}.")


class ParamGraphError(CVIError):
    """Invalid parameter-graph configuration (unknown names, bad declarations)."""


class CycleError(ParamGraphError):
    """The declared parameter dependencies contain a cycle."""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__("Dependency cycle detected: " + " -> ".join(self.cycle))


class UnknownIndexError(CVIError, KeyError):
    """Requested validity index is not registered."""

    def __str__(self):
        return str(self.args[0]) if self.args else "unknown index"
