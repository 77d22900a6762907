"""Lazy reader over a stream of concatenated JSON records."""

import json
import re
from collections.abc import AsyncIterable

from src.bulkops.codecs.base import LookaheadReader
from src.bulkops.schemas.entities import EntityRow

_WHITESPACE = re.compile(r"\s*")


class JsonRecordReader[RowType: EntityRow](LookaheadReader[RowType]):
    """Decodes one entity row per JSON value.

    Values may be separated by any whitespace and may span chunk
    boundaries. Only the undecoded tail of the input is buffered.

    Raises:
        json.JSONDecodeError: From has_next/next when the input ends inside
            a value or holds something that is not JSON
    """

    def __init__(self, chunks: AsyncIterable[str], row_type: type[RowType]):
        super().__init__()
        self._chunks = aiter(chunks)
        self._row_type = row_type
        self._decoder = json.JSONDecoder()
        self._buffer = ""
        self._exhausted = False

    async def _fill(self) -> bool:
        if self._exhausted:
            return False
        try:
            chunk = await anext(self._chunks)
        except StopAsyncIteration:
            self._exhausted = True
            return False
        self._buffer += chunk
        return True

    async def _read_next(self) -> RowType | None:
        while True:
            start = _WHITESPACE.match(self._buffer).end()
            if start == len(self._buffer):
                self._buffer = ""
                if not await self._fill():
                    return None
                continue
            try:
                value, end = self._decoder.raw_decode(self._buffer, start)
            except json.JSONDecodeError as e:
                # No value continues past a raw line break at or after the
                # error, so reading further cannot repair it
                if "\n" in self._buffer[e.pos :] or not await self._fill():
                    raise
                continue
            self._buffer = self._buffer[end:]
            return self._row_type.model_validate(value)
