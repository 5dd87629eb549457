import csv
import io
from typing import Iterable, List

import pandas as pd
import pytest

from services.workers.narrator.core.errors import EmptyDirective, GenerationEmpty, NoData
from services.workers.narrator.graph import PHASE_ORDER, run_pipeline
from services.workers.narrator.io.ingest import ingest_dataset


SAMPLE_ROWS = [
    {"order_date": f"2024-01-{index:02d}", "units": index, "price": index * 2.5, "store": f"store-{index % 3}"}
    for index in range(1, 11)
]


def _csv_bytes(rows: Iterable[dict]) -> bytes:
    rows = list(rows)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


def _xlsx_bytes(rows: Iterable[dict]) -> bytes:
    buffer = io.BytesIO()
    pd.DataFrame(list(rows)).to_excel(buffer, index=False, sheet_name="orders")
    return buffer.getvalue()


class RecordingGenerator:
    def __init__(self, text="## Findings\n\nUnits **increase** steadily."):
        self.text = text
        self.requests: List = []

    def __call__(self, request):
        self.requests.append(request)
        return self.text


@pytest.mark.parametrize(
    "file_name, body, expected_format",
    [
        ("orders.csv", _csv_bytes(SAMPLE_ROWS), "csv"),
        ("orders.xlsx", _xlsx_bytes(SAMPLE_ROWS), "excel"),
    ],
)
def test_pipeline_runs_every_phase(file_name, body, expected_format):
    dataset = ingest_dataset(file_name, body)
    assert dataset.source_format == expected_format

    generator = RecordingGenerator()
    result = run_pipeline(dataset, generator, model="test-model", max_tokens=64)

    assert list(result.phases.keys()) == PHASE_ORDER
    assert result.column_types == {
        "order_date": "date",
        "units": "numeric",
        "price": "numeric",
        "store": "text",
    }
    assert result.summary.row_count == len(SAMPLE_ROWS)
    assert len(result.summary.sample_data) == 5
    assert result.request.model == "test-model"
    assert result.report_html == "<h2>Findings</h2><p>Units <strong>increase</strong> steadily.</p>"
    assert generator.requests == [result.request]

    build = result.phases["build_request"]
    assert build["mode"] == "initial"
    assert build["maxTokens"] == 64


def test_phase_callback_is_ordered():
    dataset = ingest_dataset("orders.csv", _csv_bytes(SAMPLE_ROWS))
    seen = []

    def on_phase(phase, payload, index, total):
        seen.append((phase, index, total))

    run_pipeline(dataset, RecordingGenerator(), on_phase=on_phase)

    assert seen == [(phase, index, len(PHASE_ORDER)) for index, phase in enumerate(PHASE_ORDER)]


def test_regeneration_carries_directive():
    dataset = ingest_dataset("orders.csv", _csv_bytes(SAMPLE_ROWS))
    generator = RecordingGenerator()

    result = run_pipeline(dataset, generator, directive="Compare stores", regenerate=True)

    assert result.phases["build_request"]["mode"] == "regenerate"
    assert generator.requests[0].user.startswith(
        "Please re-analyze this dataset with the following focus: Compare stores"
    )


def test_regeneration_without_directive_stops_before_generation():
    dataset = ingest_dataset("orders.csv", _csv_bytes(SAMPLE_ROWS))
    generator = RecordingGenerator()

    with pytest.raises(EmptyDirective):
        run_pipeline(dataset, generator, directive="", regenerate=True)
    assert generator.requests == []


def test_empty_dataset_is_no_data():
    dataset = ingest_dataset("orders.csv", b"order_date,units\n")
    generator = RecordingGenerator()

    with pytest.raises(NoData):
        run_pipeline(dataset, generator)
    assert generator.requests == []


def test_non_text_generation_is_empty():
    dataset = ingest_dataset("orders.csv", _csv_bytes(SAMPLE_ROWS))

    with pytest.raises(GenerationEmpty):
        run_pipeline(dataset, lambda request: None)
