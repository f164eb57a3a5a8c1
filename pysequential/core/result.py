"""
Result envelope shared by every solver.

A solver returns ``Result[P]``: its domain payload ``P`` (a frozen
``*Params`` dataclass) together with run metadata. Solution classes wrap
the envelope and expose the payload through read-only properties.

    params        bounds, sample sizes, probabilities ...
    info          method name, test type, solver settings
    timing        seconds per Timer section, or None
    backend_name  algorithm identifier, e.g. 'cpu_gs_recursion'
    warnings      non-fatal numerical events, e.g. a clamped lower bound
"""

from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

P = TypeVar('P')


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result of one design computation.

    Examples:
        >>> Result(
        ...     params=GSParams(...),
        ...     info={'method': 'Group sequential design', 'test_type': 4},
        ...     timing={'total_seconds': 0.05, 'bounds': 0.04},
        ...     backend_name='cpu_gs_recursion',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """True if any warning contains ``substring``."""
        return any(substring in w for w in self.warnings)

    def with_params(self, params: Any) -> 'Result[Any]':
        """Same metadata around a different payload."""
        return replace(self, params=params)
