"""CSV encoding and decoding of entity rows."""

import csv
import io
from collections.abc import AsyncIterable, AsyncIterator, Sequence
from dataclasses import dataclass

from src.bulkops.clients.protocols import RemoteWriter
from src.bulkops.codecs.base import LookaheadReader
from src.bulkops.core.exceptions import ConverterError
from src.bulkops.schemas.entities import EntityRow
from src.bulkops.schemas.results import ConverterFailure


def format_csv_line(cells: Sequence[str]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(cells)
    return buffer.getvalue()


class EntityCsvWriter:
    """Writes rows under the header of their entity type.

    The header goes out right before the first data row.
    """

    def __init__(self, writer: RemoteWriter, row_type: type[EntityRow]):
        self._writer = writer
        self._row_type = row_type
        self._header_written = False

    def _convert(
        self, row: EntityRow, blanked: set[str]
    ) -> tuple[list[str], ConverterFailure | None]:
        cells: list[str] = []
        for column in self._row_type.csv_columns:
            if column.header in blanked:
                cells.append("")
                continue
            try:
                cells.append(column.to_csv(row.field_value(column.field)))
            except (TypeError, ValueError) as e:
                return cells, ConverterFailure(column.header, str(e))
        return cells, None

    async def write(self, row: EntityRow) -> list[ConverterFailure]:
        """Write one row.

        A column that fails to convert is blanked and the row converted
        again, so a row is retried at most once per column.

        Returns:
            The conversion failures met while writing the row
        """
        if not self._header_written:
            await self._writer.write(format_csv_line(self._row_type.csv_headers()))
            self._header_written = True

        failures: list[ConverterFailure] = []
        blanked: set[str] = set()
        while True:
            cells, failure = self._convert(row, blanked)
            if failure is None:
                break
            failures.append(failure)
            blanked.add(failure.field)
        await self._writer.write(format_csv_line(cells))
        return failures


@dataclass(frozen=True)
class CapturedRowError:
    """A CSV record that could not be decoded into a row."""

    line: int
    cells: list[str]
    message: str


async def _split_lines(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
    pending = ""
    async for chunk in chunks:
        pending += chunk
        *complete, pending = pending.split("\n")
        for line in complete:
            yield line.removesuffix("\r")
    if pending:
        yield pending.removesuffix("\r")


class EntityCsvReader[RowType: EntityRow](LookaheadReader[RowType]):
    """Decodes CSV records into rows without raising on bad records.

    Quoted fields may span lines. Records that fail to decode are kept in
    captured_errors with the file line they start on; empty lines and the
    first skip_lines lines are ignored.
    """

    def __init__(
        self,
        chunks: AsyncIterable[str],
        row_type: type[RowType],
        skip_lines: int = 1,
    ):
        super().__init__()
        self._lines = _split_lines(chunks)
        self._row_type = row_type
        self._skip_lines = skip_lines
        self._line_number = 0
        self.captured_errors: list[CapturedRowError] = []

    async def _read_record(self) -> tuple[int, str] | None:
        parts: list[str] = []
        start = self._line_number + 1
        while True:
            try:
                line = await anext(self._lines)
            except StopAsyncIteration:
                # Unterminated quote: hand over what was read
                return (start, "\n".join(parts)) if parts else None
            self._line_number += 1
            parts.append(line)
            text = "\n".join(parts)
            if text.count('"') % 2 == 0:
                return start, text

    async def _read_next(self) -> RowType | None:
        while True:
            record = await self._read_record()
            if record is None:
                return None
            line, text = record
            if line <= self._skip_lines or not text.strip():
                continue

            cells: list[str] = []
            try:
                cells = next(csv.reader([text]))
                return self._row_type.from_csv_cells(cells)
            except ConverterError as e:
                message = f'Field "{e.field}": {e.message}'
            except (csv.Error, ValueError) as e:
                message = str(e)
            self.captured_errors.append(CapturedRowError(line, cells, message))
