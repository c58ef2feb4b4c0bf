"""
FeatureStream: lazy, single-use query result.

Usage::

    # Batch mode: await to collect every record
    records = await store.execute(query)

    # Stream mode: iterate without holding the whole result
    async for record in store.execute(query).stream():
        process(record)

    # Scoped mode: the remote cursor is released when the block exits
    async with store.execute(query) as records:
        async for record in records:
            if done(record):
                break

Nothing is sent to the store at construction time.  The underlying
async generator is created on first consumption, and a stream can be
consumed exactly once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import StreamConsumedError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Callable, Generator
    from types import TracebackType

T = TypeVar("T")


class FeatureStream(Generic[T]):
    """
    Forward-only result: ``await`` for a ``list[T]`` or ``.stream()``
    for an ``AsyncIterator[T]``.

    Parameters
    ----------
    source:
        Zero-argument callable that returns the async generator producing
        the records.  Called at most once.
    """

    __slots__ = ("_active", "_consumed", "_source")

    def __init__(self, source: Callable[[], AsyncGenerator[T, None]]) -> None:
        self._source = source
        self._consumed = False
        self._active: AsyncGenerator[T, None] | None = None

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _open(self) -> AsyncGenerator[T, None]:
        if self._consumed:
            raise StreamConsumedError("FeatureStream has already been consumed")
        self._consumed = True
        self._active = self._source()
        return self._active

    # -- await support ------------------------------------------------------

    def __await__(self) -> Generator[Any, None, list[T]]:
        """Make ``await stream`` return ``list[T]``."""
        return self._collect().__await__()

    async def _collect(self) -> list[T]:
        return [item async for item in self._open()]

    # -- streaming support --------------------------------------------------

    def stream(self) -> AsyncIterator[T]:
        """Return the record iterator.  Call ``aclose()`` on it to stop early."""
        return self._open()

    # -- scoped iteration ---------------------------------------------------

    async def __aenter__(self) -> AsyncIterator[T]:
        return self._open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying generator if it was started."""
        if self._active is not None:
            await self._active.aclose()

    # -- convenience --------------------------------------------------------

    async def first(self) -> T | None:
        """Return the first record, or ``None``; the rest is not fetched."""
        generator = self._open()
        try:
            async for item in generator:
                return item
            return None
        finally:
            await generator.aclose()
