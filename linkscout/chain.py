"""A chain of responsibility for processing values.

Each handler in a chain receives a value and either passes a (possibly
changed) value on with :class:`Next`, or stops the chain with a result
wrapped in :class:`Done`.
"""

from __future__ import annotations

import asyncio
import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Iterable, TypeVar, Union

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Next(Generic[T]):
    """Continue with the next handler, passing ``value`` on."""

    value: T


@dataclass(frozen=True)
class Done(Generic[R]):
    """Stop the chain and return ``value`` as the result."""

    value: R


ChainResult = Union[Next, Done]


class Unresolved(enum.Enum):
    """Outcome when no chain produced a result."""

    EXCLUDED = "excluded"


EXCLUDED = Unresolved.EXCLUDED


class Handler(ABC, Generic[T, R]):
    """A single element of a chain."""

    @abstractmethod
    async def handle(self, value: T) -> ChainResult:
        """Return ``Next(value)`` to continue or ``Done(result)`` to stop."""


class Chain(Generic[T, R]):
    """An ordered list of handlers, traversed one after another.

    Traversals are serialised so that stateful handlers are never run
    concurrently.
    """

    def __init__(self, handlers: Iterable[Handler] = ()) -> None:
        self._handlers: list[Handler] = list(handlers)
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"Chain({self._handlers!r})"

    async def traverse(self, value: T) -> ChainResult:
        """Run ``value`` through every handler until one returns :class:`Done`."""
        async with self._lock:
            for handler in self._handlers:
                outcome = await handler.handle(value)
                if isinstance(outcome, Done):
                    return outcome
                if not isinstance(outcome, Next):
                    raise TypeError(
                        f"handler {handler!r} returned {outcome!r}, "
                        "expected Next or Done"
                    )
                value = outcome.value
        return Next(value)


class ClientRequestChains:
    """Several chains traversed in order, resolving to a single result."""

    def __init__(self, chains: Iterable[Chain], fallback: Any = EXCLUDED) -> None:
        self._chains = list(chains)
        self._fallback = fallback

    async def traverse(self, value: Any) -> Any:
        """Return the first :class:`Done` result, or the fallback if none."""
        for chain in self._chains:
            outcome = await chain.traverse(value)
            if isinstance(outcome, Done):
                return outcome.value
            value = outcome.value
        return self._fallback