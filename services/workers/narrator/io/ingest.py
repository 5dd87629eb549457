from __future__ import annotations
import io, csv, codecs, datetime, logging, math, re
from typing import Any, Dict, Iterable, List, Sequence, Set
import numpy as np
import pandas as pd
from ..core.types import BinaryInput, Dataset, Row, Scalar
from ..core.errors import ParseError, UnsupportedFormat
from ..core.utils import _open_binary_stream, _ensure_bytes, _file_extension, _coerce_token
from ..core.constants import _DELIMITED_STREAM_CHUNK_SIZE, _CSV_EXTENSIONS, _EXCEL_EXTENSIONS

logger = logging.getLogger(__name__)

# a lone \r only counts once the next character is known not to be \n
_LINE_BREAK = re.compile(r"\r\n|\n|\r(?=[^\n])")


class _DatasetBuilder:
    """Collects rows in order and keeps the unique column list in first-seen order."""

    def __init__(self, file_name: str, source_format: str) -> None:
        self.file_name = file_name
        self.source_format = source_format
        self.bytes_read = 0
        self.rows: List[Row] = []
        self._columns: Dict[str, None] = {}

    def register_columns(self, names: Sequence[str]) -> None:
        for name in names:
            self._columns.setdefault(name, None)

    def process_row(self, headers: Sequence[str], values: Sequence[Scalar]) -> None:
        # later duplicates of a header overwrite earlier ones
        record: Row = {}
        for name, value in zip(headers, values):
            record[name] = value
        self.rows.append(record)

    def increment_bytes_read(self, amount: int) -> None:
        self.bytes_read += amount

    def build(self) -> Dataset:
        return Dataset(
            file_name=self.file_name,
            rows=self.rows,
            columns=list(self._columns),
            source_format=self.source_format,
            bytes_read=self.bytes_read,
        )


class _HeaderNormalizer:
    """Cleans header cells and names blank or overflow columns."""

    def __init__(self) -> None:
        self._used: Set[str] = set()

    def _clean(self, raw: Any, index: int) -> str:
        if isinstance(raw, float) and raw.is_integer():
            raw = int(raw)
        text = "" if raw is None else str(raw)
        text = text.lstrip("\ufeff").strip()
        if not text:
            return self.generate_default(index)
        self._used.add(text)
        return text

    def normalize(self, fieldnames: Sequence[Any]) -> List[str]:
        return [self._clean(name, index) for index, name in enumerate(fieldnames)]

    def generate_default(self, index: int) -> str:
        candidate = f"column_{index + 1}"
        suffix = 1
        while candidate in self._used:
            suffix += 1
            candidate = f"column_{index + 1}_{suffix}"
        self._used.add(candidate)
        return candidate


def _ingest_delimited(file_name: str, body: BinaryInput, delimiter: str, source_format: str) -> Dataset:
    stream, should_close = _open_binary_stream(body)
    decoder = codecs.getincrementaldecoder("utf-8")("replace")
    builder = _DatasetBuilder(file_name, source_format)
    buffer = ""
    normalizer = _HeaderNormalizer()

    def _split_complete_lines() -> Iterable[str]:
        nonlocal buffer
        while True:
            match = _LINE_BREAK.search(buffer)
            if match is None:
                break
            yield buffer[: match.end()]
            buffer = buffer[match.end() :]

    def _iter_lines() -> Iterable[str]:
        nonlocal buffer
        while True:
            chunk = stream.read(_DELIMITED_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            if isinstance(chunk, bytes):
                data = chunk
            elif isinstance(chunk, bytearray):
                data = bytes(chunk)
            else:
                raise TypeError(f"Delimited dataset chunk from {file_name} must be bytes-like")
            builder.increment_bytes_read(len(data))
            decoded = decoder.decode(data)
            if decoded:
                buffer += decoded
            yield from _split_complete_lines()
        remainder = decoder.decode(b"", final=True)
        if remainder:
            buffer += remainder
        yield from _split_complete_lines()
        if buffer:
            yield buffer

    try:
        raw_reader = csv.reader(_iter_lines(), delimiter=delimiter, strict=True)
        try:
            first_row = next(raw_reader)
            while not first_row:
                first_row = next(raw_reader)
        except StopIteration:
            return builder.build()

        headers = normalizer.normalize(first_row)
        builder.register_columns(headers)

        for raw_row in raw_reader:
            # only a truly empty line is skipped; ",," is a row of nulls
            if not raw_row:
                continue

            values: List[Scalar] = [_coerce_token(cell) for cell in raw_row]
            if len(values) < len(headers):
                values.extend([None] * (len(headers) - len(values)))
            elif len(values) > len(headers):
                while len(headers) < len(values):
                    headers.append(normalizer.generate_default(len(headers)))
                builder.register_columns(headers)
                logger.warning(
                    "row has more fields than the header",
                    extra={"file_name": file_name, "line": raw_reader.line_num},
                )

            builder.process_row(headers, values)
        return builder.build()
    except csv.Error as exc:
        raise ParseError(f"Error parsing CSV: {exc}") from exc
    finally:
        if should_close:
            stream.close()


def _ingest_csv(file_name: str, body: BinaryInput) -> Dataset:
    return _ingest_delimited(file_name, body, ",", "csv")


def _normalize_cell(value: Any) -> Scalar:
    if isinstance(value, np.generic):
        value = value.item()
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, int):
        return value
    if value is pd.NaT:
        return None
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return str(value)
    return str(value)


def _dataframe_to_dataset(frame: Any, file_name: str, source_format: str, bytes_read: int) -> Dataset:
    builder = _DatasetBuilder(file_name, source_format)
    builder.increment_bytes_read(bytes_read)
    grid = [[_normalize_cell(cell) for cell in record] for record in frame.itertuples(index=False, name=None)]
    grid = [cells for cells in grid if any(cell is not None and cell != "" for cell in cells)]
    if not grid:
        return builder.build()

    normalizer = _HeaderNormalizer()
    headers = normalizer.normalize(grid[0])
    builder.register_columns(headers)
    for cells in grid[1:]:
        builder.process_row(headers, cells)
    return builder.build()


def _ingest_excel(file_name: str, body: bytes) -> Dataset:
    engine = "xlrd" if _file_extension(file_name) == "xls" else "openpyxl"
    try:
        with io.BytesIO(body) as stream:
            frame = pd.read_excel(stream, sheet_name=0, header=None, dtype=object, engine=engine)
    except ImportError:
        raise
    except Exception as exc:
        raise ParseError(f"Error reading file: {exc}") from exc

    return _dataframe_to_dataset(frame, file_name, "excel", len(body))


def ingest_dataset(file_name: str, body: BinaryInput) -> Dataset:
    """Parse an uploaded payload into a ``Dataset`` chosen by file extension.

    Raises ``UnsupportedFormat`` for anything other than csv/xlsx/xls and
    ``ParseError`` when the content is malformed for its format.
    """
    extension = _file_extension(file_name)
    if extension in _CSV_EXTENSIONS:
        dataset = _ingest_csv(file_name, body)
    elif extension in _EXCEL_EXTENSIONS:
        dataset = _ingest_excel(file_name, _ensure_bytes(body))
    else:
        raise UnsupportedFormat("Please upload a CSV, XLS, or XLSX file")

    logger.info(
        "dataset ingested",
        extra={"file_name": file_name, "rows": dataset.row_count, "columns": len(dataset.columns)},
    )
    return dataset
