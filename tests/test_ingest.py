import csv
import datetime
import io

import pandas as pd
import pytest

from services.workers.narrator.core.errors import ParseError, UnsupportedFormat
from services.workers.narrator.io.ingest import _dataframe_to_dataset, ingest_dataset


SAMPLE_ROWS = [{"id": index, "value": index * 10, "label": f"item-{index}"} for index in range(1, 11)]


def _csv_bytes(rows):
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


def _xlsx_bytes(frame: pd.DataFrame, **kwargs) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, **kwargs)
    return buffer.getvalue()


class _ChunkedBinaryStream:
    def __init__(self, payload: bytes, chunk_size: int = 8192) -> None:
        self._payload = payload
        self._chunk_size = chunk_size
        self._index = 0
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = self._chunk_size
        else:
            size = min(size, self._chunk_size)
        chunk = self._payload[self._index : self._index + size]
        self._index += len(chunk)
        return chunk

    def close(self) -> None:
        self.closed = True


def test_csv_rows_and_columns_preserve_order():
    dataset = ingest_dataset("sample.csv", _csv_bytes(SAMPLE_ROWS))

    assert dataset.row_count == len(SAMPLE_ROWS)
    assert dataset.columns == ["id", "value", "label"]
    assert dataset.source_format == "csv"
    assert dataset.rows[0] == {"id": 1, "value": 10, "label": "item-1"}
    assert dataset.rows[-1]["id"] == 10


def test_csv_dynamic_typing():
    payload = b"a,b,c,d,e\n1,2.5,true,hello,\n-3,1e3,FALSE,007x, \n"
    dataset = ingest_dataset("types.csv", payload)

    first, second = dataset.rows
    assert first == {"a": 1, "b": 2.5, "c": True, "d": "hello", "e": None}
    assert isinstance(first["a"], int) and not isinstance(first["a"], bool)
    assert second["a"] == -3
    assert second["b"] == 1000.0
    assert second["c"] is False
    assert second["d"] == "007x"
    assert second["e"] == " "


def test_csv_keeps_nan_and_inf_tokens_as_text():
    dataset = ingest_dataset("tokens.csv", b"x\nnan\ninf\n")
    assert [row["x"] for row in dataset.rows] == ["nan", "inf"]


def test_csv_skips_empty_lines_and_pads_short_rows():
    payload = b"a,b,c\n\n1,2\n,,\n4,5,6\n\n"
    dataset = ingest_dataset("gaps.csv", payload)

    assert dataset.row_count == 3
    assert dataset.rows[0] == {"a": 1, "b": 2, "c": None}
    assert dataset.rows[1] == {"a": None, "b": None, "c": None}
    assert dataset.rows[2] == {"a": 4, "b": 5, "c": 6}


def test_csv_blank_field_rows_are_kept():
    dataset = ingest_dataset("g.csv", b"a,b,c\n1,2,3\n,,\n4,5,6\n")

    assert dataset.row_count == 3
    assert dataset.rows[1] == {"a": None, "b": None, "c": None}


@pytest.mark.parametrize(
    "payload",
    [b"a,b\r1,2\r3,4\r", b"a,b\r1,2\r3,4", b"a,b\r\n1,2\r\n3,4\r\n", b"a,b\n1,2\n3,4\n"],
)
def test_csv_line_ending_styles(payload):
    dataset = ingest_dataset("endings.csv", payload)

    assert dataset.columns == ["a", "b"]
    assert dataset.rows == [{"a": 1, "b": 2}, {"a": 3, "b": 4}]


def test_csv_carriage_returns_split_across_chunks():
    payload = b"a,b\r\n1,2\r3,4\r\n5,6\r"

    dataset = ingest_dataset("mac.csv", _ChunkedBinaryStream(payload, chunk_size=1))

    assert dataset.rows == [{"a": 1, "b": 2}, {"a": 3, "b": 4}, {"a": 5, "b": 6}]


def test_csv_quoted_carriage_return_stays_in_field():
    dataset = ingest_dataset("quoted_cr.csv", b'a,b\r"x\ry",2\r')

    assert dataset.rows == [{"a": "x\ry", "b": 2}]


def test_csv_duplicate_headers_last_value_wins():
    dataset = ingest_dataset("dupes.csv", b"name,score,name\nalpha,1,beta\n")

    assert dataset.columns == ["name", "score"]
    assert dataset.rows[0] == {"name": "beta", "score": 1}


def test_csv_blank_header_gets_generated_name():
    dataset = ingest_dataset("blank.csv", b"\xef\xbb\xbfid,,value\n1,x,2\n")

    assert dataset.columns == ["id", "column_2", "value"]
    assert dataset.rows[0]["column_2"] == "x"


def test_csv_extra_fields_extend_header():
    dataset = ingest_dataset("wide.csv", b"a,b\n1,2\n3,4,5\n")

    assert dataset.columns == ["a", "b", "column_3"]
    assert "column_3" not in dataset.rows[0]
    assert dataset.rows[1]["column_3"] == 5


def test_csv_quoted_fields_span_lines():
    payload = b'id,note\n1,"line one\nline two"\n2,plain\n'
    dataset = ingest_dataset("quoted.csv", payload)

    assert dataset.row_count == 2
    assert dataset.rows[0]["note"] == "line one\nline two"


def test_csv_header_only_yields_empty_dataset():
    dataset = ingest_dataset("empty.csv", b"a,b,c\n")

    assert dataset.columns == ["a", "b", "c"]
    assert dataset.is_empty


def test_csv_streams_input_in_chunks():
    payload = _csv_bytes(SAMPLE_ROWS)
    stream = _ChunkedBinaryStream(payload, chunk_size=7)

    dataset = ingest_dataset("stream.csv", stream)

    assert dataset.row_count == len(SAMPLE_ROWS)
    assert dataset.bytes_read == len(payload)


def test_malformed_csv_raises_parse_error():
    with pytest.raises(ParseError) as excinfo:
        ingest_dataset("broken.csv", b'a,b\n"unterminated,1\n')
    assert "Error parsing CSV" in excinfo.value.message


@pytest.mark.parametrize("file_name", ["notes.txt", "data.json", "README", "archive.csv.zip"])
def test_unsupported_extension(file_name):
    with pytest.raises(UnsupportedFormat):
        ingest_dataset(file_name, b"a,b\n1,2\n")


def test_extension_match_is_case_insensitive():
    dataset = ingest_dataset("UPPER.CSV", b"a\n1\n")
    assert dataset.rows == [{"a": 1}]


def test_xlsx_first_sheet_only_and_nulls_present():
    first = pd.DataFrame({"city": ["Oslo", "Lima", None], "temp": [3.5, None, 18]})
    second = pd.DataFrame({"other": [1, 2]})
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        first.to_excel(writer, sheet_name="Weather", index=False)
        second.to_excel(writer, sheet_name="Ignored", index=False)

    dataset = ingest_dataset("weather.xlsx", buffer.getvalue())

    assert dataset.source_format == "excel"
    assert dataset.columns == ["city", "temp"]
    assert dataset.row_count == 3
    assert dataset.rows[0] == {"city": "Oslo", "temp": 3.5}
    assert dataset.rows[1] == {"city": "Lima", "temp": None}
    assert dataset.rows[2]["city"] is None
    assert set(dataset.rows[2]) == {"city", "temp"}


def test_xlsx_dates_become_iso_strings():
    frame = pd.DataFrame({"day": [datetime.datetime(2023, 1, 1), datetime.datetime(2023, 1, 2)], "n": [1, 2]})

    dataset = ingest_dataset("days.xlsx", _xlsx_bytes(frame))

    assert dataset.rows[0]["day"].startswith("2023-01-01")
    assert dataset.rows[1]["n"] == 2


def test_corrupt_xlsx_raises_parse_error():
    with pytest.raises(ParseError):
        ingest_dataset("corrupt.xlsx", b"this is not a zip container")


def test_integral_float_headers_drop_fraction():
    # legacy .xls sheets come back from xlrd with every number as a float
    frame = pd.DataFrame([[2023.0, 2.5, "label"], [1.0, 2.0, "x"]], dtype=object)

    dataset = _dataframe_to_dataset(frame, "legacy.xls", "excel", 0)

    assert dataset.columns == ["2023", "2.5", "label"]
    assert dataset.rows == [{"2023": 1.0, "2.5": 2.0, "label": "x"}]
