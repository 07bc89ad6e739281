"""Result types for railway-oriented programming.

Security checks in this package report their outcome as data rather than by
raising. A denied permission or an exhausted rate limit is a normal result;
only infrastructure faults travel as ``Failure`` (or as exceptions from the
store).

Usage:
    def parse_limit(raw: str) -> Result[int, str]:
        if not raw.isdigit():
            return Failure(error="limit must be numeric")
        return Success(value=int(raw))

    match parse_limit("5"):
        case Success(value=limit):
            print(f"Limit: {limit}")
        case Failure(error=error):
            print(f"Error: {error}")
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]
