"""
Unit tests for batch result export.

Tests CSV rows and headers, the optional report column, JSON shape,
download file names and media types.

Dependencies: pytest
System role: Export rendering verification
"""

import csv
import io
import json
import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from prospect_batch.boundary.db.models import BatchItemStatus
from prospect_batch.core.batch_processing.export import (
    CSV_HEADERS,
    REPORT_HEADER,
    ExportFormat,
    build_export,
    export_file_name,
    export_prospect,
)

TODAY = date(2026, 3, 2)


def make_item(index, input_data, **fields):
    values = {
        "item_index": index,
        "input_data": input_data,
        "status": BatchItemStatus.COMPLETED,
        "prospect_name": None,
        "prospect_address": None,
        "prospect_city": None,
        "prospect_state": None,
        "prospect_zip": None,
        "romy_score": None,
        "romy_score_tier": None,
        "capacity_rating": None,
        "estimated_net_worth": None,
        "estimated_gift_capacity": None,
        "recommended_ask": None,
        "report_content": None,
    }
    values.update(fields)
    return SimpleNamespace(**values)


@pytest.fixture
def job():
    return SimpleNamespace(
        id=uuid.UUID("3f2b8c1e-5d7a-4e3b-9c1f-0a2b3c4d5e6f"),
        name="Spring donors / 2026",
        created_at=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc),
        completed_at=datetime(2026, 3, 1, 11, 30, tzinfo=timezone.utc),
        total_prospects=3,
        completed_count=2,
        failed_count=1,
    )


@pytest.fixture
def items():
    return [
        make_item(
            0,
            {"name": "Jane Doe", "address": "12 Elm St, Apt 4", "city": "Austin", "state": "TX", "zip": "78701"},
            romy_score=31,
            romy_score_tier="Strong",
            capacity_rating="A",
            estimated_net_worth=4500000.0,
            estimated_gift_capacity=225000.0,
            recommended_ask=50000.0,
            report_content="# Jane Doe\nBoard member.",
        ),
        make_item(
            2,
            {"name": "Ann Poe", "full_address": "9 Oak Ave, El Paso, TX"},
            prospect_state="TX",
        ),
    ]


def read_rows(content):
    return list(csv.reader(io.StringIO(content)))


class TestExportProspect:
    """Test suite for flattening items into export rows."""

    def test_index_is_one_based(self, items):
        assert export_prospect(items[1]).index == 3

    def test_address_falls_back_to_full_address(self, items):
        prospect = export_prospect(items[1])

        assert prospect.address == "9 Oak Ave, El Paso, TX"
        assert prospect.city is None
        assert prospect.state == "TX"

    def test_report_only_on_request(self, items):
        assert export_prospect(items[0]).report is None
        assert export_prospect(items[0], include_reports=True).report == "# Jane Doe\nBoard member."


class TestCsvExport:
    """Test suite for CSV rendering."""

    def test_headers_and_values(self, job, items):
        export = build_export(job, items, ExportFormat.CSV, today=TODAY)
        rows = read_rows(export.content)

        assert rows[0] == CSV_HEADERS
        assert rows[1] == [
            "1", "Jane Doe", "12 Elm St, Apt 4", "Austin", "TX", "78701",
            "31", "Strong", "A", "4500000.0", "225000.0", "50000.0", "completed",
        ]
        assert rows[2][:6] == ["3", "Ann Poe", "9 Oak Ave, El Paso, TX", "", "TX", ""]
        assert rows[2][6:12] == [""] * 6

    def test_report_column_keeps_one_line_per_prospect(self, job, items):
        export = build_export(job, items, ExportFormat.CSV, include_reports=True, today=TODAY)
        rows = read_rows(export.content)

        assert rows[0][-1] == REPORT_HEADER
        assert rows[1][-1] == "# Jane Doe\\nBoard member."
        assert rows[2][-1] == ""
        assert len(export.content.strip().split("\n")) == 3

    def test_media_type_and_file_name(self, job, items):
        export = build_export(job, items, ExportFormat.CSV, today=TODAY)

        assert export.media_type == "text/csv"
        assert export.filename == "Spring_donors___2026_export_2026-03-02.csv"


class TestJsonExport:
    """Test suite for JSON rendering."""

    def test_job_summary_and_prospects(self, job, items):
        export = build_export(job, items, ExportFormat.JSON, today=TODAY)
        document = json.loads(export.content)

        assert export.media_type == "application/json"
        assert export.filename.endswith("_export_2026-03-02.json")
        assert document["job"]["id"] == str(job.id)
        assert document["job"]["completed_count"] == 2
        assert document["job"]["failed_count"] == 1
        assert [p["index"] for p in document["prospects"]] == [1, 3]
        assert document["prospects"][0]["romy_score"] == 31
        assert "report" not in document["prospects"][0]
        assert "status" not in document["prospects"][0]

    def test_reports_included_on_request(self, job, items):
        export = build_export(job, items, ExportFormat.JSON, include_reports=True, today=TODAY)
        prospects = json.loads(export.content)["prospects"]

        assert prospects[0]["report"] == "# Jane Doe\nBoard member."
        assert prospects[1]["report"] is None


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Gala 2026", "Gala_2026_export_2026-03-02.csv"),
        ("a/b\\c", "a_b_c_export_2026-03-02.csv"),
        ("Ōkubo", "_kubo_export_2026-03-02.csv"),
    ],
)
def test_file_name_replaces_non_alphanumerics(name, expected):
    assert export_file_name(name, ExportFormat.CSV, TODAY) == expected
