"""Tests for CSV encoding and the tolerant CSV reader."""

import pytest

from src.bulkops.codecs.csv_stream import EntityCsvReader, EntityCsvWriter, format_csv_line
from src.bulkops.schemas.entities import ItemRow, UserRow
from tests.helpers import csv_text, make_users

pytestmark = pytest.mark.unit


class CollectingWriter:
    def __init__(self) -> None:
        self.parts: list[str] = []

    async def write(self, text: str) -> None:
        self.parts.append(text)

    @property
    def text(self) -> str:
        return "".join(self.parts)


async def chunked(text: str, size: int):
    for start in range(0, len(text), size):
        yield text[start : start + size]


class TestFormatCsvLine:
    def test_quotes_only_when_needed(self):
        assert format_csv_line(["a", "b c", "d,e", 'say "hi"', "two\nlines"]) == (
            'a,b c,"d,e","say ""hi""","two\nlines"\n'
        )


class TestEntityCsvWriter:
    async def test_no_header_without_rows(self):
        out = CollectingWriter()
        EntityCsvWriter(out, UserRow)

        assert out.text == ""

    async def test_header_precedes_first_row_only(self):
        out = CollectingWriter()
        writer = EntityCsvWriter(out, UserRow)

        for user in make_users("anna", "bob"):
            assert await writer.write(user) == []

        assert out.text == csv_text(make_users("anna", "bob"))
        assert out.text.count("User name,User id") == 1

    async def test_failing_columns_are_blanked(self):
        out = CollectingWriter()
        writer = EntityCsvWriter(out, UserRow)
        [user] = make_users("anna")
        user = user.model_copy(
            update={"enrollment_date": "yesterday", "expiration_date": "tomorrow"}
        )

        failures = await writer.write(user)

        assert [failure.field for failure in failures] == ["Enrollment date", "Expiration date"]
        assert failures[0].error_message.startswith('Field "Enrollment date": ')
        row_line = out.text.splitlines()[1]
        assert row_line.startswith("anna,user-anna,")
        assert row_line.endswith(",,")

    async def test_nested_value_in_text_column_fails(self):
        out = CollectingWriter()
        writer = EntityCsvWriter(out, ItemRow)
        item = ItemRow.model_construct(id="i1", copy_number={"unexpected": "shape"})

        [failure] = await writer.write(item)

        assert failure.field == "Copy number"


class TestEntityCsvReader:
    @pytest.mark.parametrize("chunk_size", [1, 13, 10_000])
    async def test_reads_rows_after_header(self, chunk_size: int):
        users = make_users("anna", "bob")
        reader = EntityCsvReader(chunked(csv_text(users), chunk_size), UserRow)

        rows = [row async for row in reader]

        assert rows == users
        assert reader.captured_errors == []

    async def test_quoted_field_spanning_lines(self):
        [user] = make_users("anna")
        user = user.model_copy(update={"type": "line one\nline two, with comma"})
        reader = EntityCsvReader(chunked(csv_text([user]), 5), UserRow)

        [row] = [row async for row in reader]

        assert row.type == "line one\nline two, with comma"

    async def test_blank_lines_and_crlf_are_tolerated(self):
        text = csv_text(make_users("anna", "bob")).replace("\n", "\r\n")
        lines = text.split("\r\n")
        text = "\r\n".join(lines[:2] + [""] + lines[2:])
        reader = EntityCsvReader(chunked(text, 9), UserRow)

        rows = [row async for row in reader]

        assert [row.username for row in rows] == ["anna", "bob"]

    async def test_bad_records_are_captured_not_raised(self):
        good = csv_text(make_users("anna"))
        cells = [""] * len(UserRow.csv_columns)
        cells[0], cells[1], cells[4] = "bob", "user-bob", "maybe"
        text = good + "zed,user-zed\n" + format_csv_line(cells)
        reader = EntityCsvReader(chunked(text, 11), UserRow)

        rows = [row async for row in reader]

        assert [row.username for row in rows] == ["anna"]
        first, second = reader.captured_errors
        assert first.line == 3
        assert first.cells == ["zed", "user-zed"]
        assert first.message == (
            "Number of data fields does not match number of headers: expected 14, got 2"
        )
        assert second.line == 4
        assert second.message.startswith('Field "Active": ')

    async def test_skip_lines(self):
        text = "ignored preamble\n" + csv_text(make_users("anna"))
        reader = EntityCsvReader(chunked(text, 4), UserRow, skip_lines=2)

        rows = [row async for row in reader]

        assert [row.username for row in rows] == ["anna"]
