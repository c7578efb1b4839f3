"""Error kinds raised by collaborators and by the solvers.

Collaborators raise :class:`OracleError`.  The requirement evaluator turns a
failed evaluation into a tagged result (:class:`Ok`, :class:`InvalidNotional`,
:class:`OtherFailure`) so the max-size solver can shrink its bracket on an
invalid notional and abort on anything else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

__all__ = [
    "OracleError",
    "InvalidNotionalError",
    "QueryError",
    "ExceedsMaximumSizeError",
    "InvalidPositionError",
    "NonConvergentError",
    "Ok",
    "InvalidNotional",
    "OtherFailure",
    "EvalResult",
]


class OracleError(RuntimeError):
    """Failure reported by an external collaborator."""


class InvalidNotionalError(OracleError):
    """Position notional is outside the tradeable range."""


class QueryError(RuntimeError):
    """Base class for solver failures surfaced to the caller."""

    def __init__(
        self,
        message: str,
        *,
        ladder_index: int | None = None,
        direction: str | None = None,
    ) -> None:
        self.ladder_index = ladder_index
        self.direction = direction
        context = []
        if ladder_index is not None:
            context.append(f"ladder_index={ladder_index}")
        if direction is not None:
            context.append(f"direction={direction}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ExceedsMaximumSizeError(QueryError):
    """Bracket expansion passed the largest representable position size."""


class InvalidPositionError(QueryError):
    """The candidate position could not be evaluated."""


class NonConvergentError(QueryError):
    """A solver hit its iteration cap or a flat region."""


@dataclass(frozen=True)
class Ok:
    amount: int


@dataclass(frozen=True)
class InvalidNotional:
    reason: str = ""


@dataclass(frozen=True)
class OtherFailure:
    reason: str
    error: BaseException | None = None


EvalResult = Union[Ok, InvalidNotional, OtherFailure]
