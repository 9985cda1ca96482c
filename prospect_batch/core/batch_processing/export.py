"""
Export of completed batch results.

Renders a job's completed items as a CSV or JSON download. Prospect
fields come from the item's ``input_data`` with the denormalized columns
as fallback. Full research reports are only included on request.

Dependencies: csv (stdlib), pydantic, prospect_batch.boundary.db.models
System role: Result export for batch prospect research jobs
"""

import csv
import io
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Sequence
from uuid import UUID

from pydantic import BaseModel

from prospect_batch.boundary.db.models import BatchItemModel, BatchJobModel


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
}

CSV_HEADERS = [
    "Index",
    "Name",
    "Address",
    "City",
    "State",
    "ZIP",
    "RōmyScore",
    "Score Tier",
    "Capacity Rating",
    "Est. Net Worth",
    "Est. Gift Capacity",
    "Recommended Ask",
    "Status",
]
REPORT_HEADER = "Full Report"


class ExportedProspect(BaseModel):
    """One completed prospect as it appears in an export."""

    index: int
    name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    romy_score: int | None = None
    romy_score_tier: str | None = None
    capacity_rating: str | None = None
    estimated_net_worth: float | None = None
    estimated_gift_capacity: float | None = None
    recommended_ask: float | None = None
    status: str = "completed"
    report: str | None = None


class ExportedJob(BaseModel):
    """Job summary at the top of a JSON export."""

    id: UUID
    name: str
    created_at: datetime | None = None
    completed_at: datetime | None = None
    total_prospects: int
    completed_count: int
    failed_count: int


class BatchExport(BaseModel):
    """JSON export document."""

    job: ExportedJob
    prospects: list[ExportedProspect]


@dataclass
class ExportFile:
    """Rendered export ready to be sent as a download."""

    content: str
    media_type: str
    filename: str


def export_prospect(item: BatchItemModel, include_reports: bool = False) -> ExportedProspect:
    """
    Flatten a completed item into export fields.

    Args:
        item: Completed batch item
        include_reports: Carry the markdown report along

    Returns:
        ExportedProspect: Export row (index is 1-based)
    """
    data = item.input_data or {}
    return ExportedProspect(
        index=item.item_index + 1,
        name=data.get("name") or item.prospect_name,
        address=data.get("address") or data.get("full_address") or item.prospect_address,
        city=data.get("city") or item.prospect_city,
        state=data.get("state") or item.prospect_state,
        zip=data.get("zip") or item.prospect_zip,
        romy_score=item.romy_score,
        romy_score_tier=item.romy_score_tier,
        capacity_rating=item.capacity_rating,
        estimated_net_worth=item.estimated_net_worth,
        estimated_gift_capacity=item.estimated_gift_capacity,
        recommended_ask=item.recommended_ask,
        status=item.status.value,
        report=item.report_content if include_reports else None,
    )


def _cell(value) -> str:
    return "" if value is None else str(value)


def render_csv(prospects: Sequence[ExportedProspect], include_reports: bool = False) -> str:
    """
    Render export rows as CSV.

    Report newlines are written as a literal ``\\n`` so every prospect
    stays on one line.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS + ([REPORT_HEADER] if include_reports else []))

    for prospect in prospects:
        row = [
            prospect.index,
            _cell(prospect.name),
            _cell(prospect.address),
            _cell(prospect.city),
            _cell(prospect.state),
            _cell(prospect.zip),
            _cell(prospect.romy_score),
            _cell(prospect.romy_score_tier),
            _cell(prospect.capacity_rating),
            _cell(prospect.estimated_net_worth),
            _cell(prospect.estimated_gift_capacity),
            _cell(prospect.recommended_ask),
            prospect.status,
        ]
        if include_reports:
            row.append((prospect.report or "").replace("\n", "\\n"))
        writer.writerow(row)

    return buffer.getvalue()


def render_json(
    job: BatchJobModel,
    prospects: Sequence[ExportedProspect],
    include_reports: bool = False,
) -> str:
    """Render a job summary plus export rows as indented JSON."""
    document = BatchExport(
        job=ExportedJob(
            id=job.id,
            name=job.name,
            created_at=job.created_at,
            completed_at=job.completed_at,
            total_prospects=job.total_prospects,
            completed_count=job.completed_count,
            failed_count=job.failed_count,
        ),
        prospects=list(prospects),
    )
    hidden = {"status"} if include_reports else {"status", "report"}
    return document.model_dump_json(indent=2, exclude={"prospects": {"__all__": hidden}})


def export_file_name(job_name: str, export_format: ExportFormat, today: date) -> str:
    """Download name: job name with non-alphanumerics replaced, plus the date."""
    safe_name = re.sub(r"[^a-z0-9]", "_", job_name, flags=re.IGNORECASE)
    return f"{safe_name}_export_{today.isoformat()}.{export_format.value}"


def build_export(
    job: BatchJobModel,
    items: Sequence[BatchItemModel],
    export_format: ExportFormat,
    include_reports: bool = False,
    today: date | None = None,
) -> ExportFile:
    """
    Render a job's completed items in the requested format.

    Args:
        job: Job being exported
        items: Completed items in index order
        export_format: CSV or JSON
        include_reports: Include full report content
        today: Date used in the file name (defaults to today)

    Returns:
        ExportFile: Content, media type and download file name
    """
    prospects = [export_prospect(item, include_reports) for item in items]
    if export_format == ExportFormat.CSV:
        content = render_csv(prospects, include_reports)
    else:
        content = render_json(job, prospects, include_reports)

    return ExportFile(
        content=content,
        media_type=MEDIA_TYPES[export_format],
        filename=export_file_name(job.name, export_format, today or date.today()),
    )
