"""Shared lookahead behaviour of the forward-only record readers."""

from abc import ABC, abstractmethod


class LookaheadReader[RowType](ABC):
    """Forward-only reader with one record of lookahead.

    Subclasses implement _read_next, returning None once the input is
    exhausted. Readers are async iterables.
    """

    def __init__(self) -> None:
        self._pending: RowType | None = None
        self._done = False

    @abstractmethod
    async def _read_next(self) -> RowType | None: ...

    async def has_next(self) -> bool:
        """Check whether another record follows, reading it ahead if needed."""
        if self._pending is None and not self._done:
            self._pending = await self._read_next()
            self._done = self._pending is None
        return self._pending is not None

    async def next(self) -> RowType:
        """Return the next record.

        Raises:
            StopAsyncIteration: If the input is exhausted
        """
        if not await self.has_next():
            raise StopAsyncIteration
        row, self._pending = self._pending, None
        return row

    def __aiter__(self) -> "LookaheadReader[RowType]":
        return self

    async def __anext__(self) -> RowType:
        return await self.next()
