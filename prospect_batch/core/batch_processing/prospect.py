"""
Prospect input normalization and validation.

Reconciles the structured ``input_data`` payload with the denormalized
address columns, normalizes address components, validates submissions,
scores address quality, and detects duplicate rows.

Dependencies: pydantic
System role: Prospect data hygiene for job creation and item execution
"""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

ADDRESS_FIELDS = ("address", "city", "state", "zip")

COMMON_NAMES = frozenset({"john smith", "michael johnson", "david williams", "james brown"})


class ProspectInput(BaseModel):
    """Identifying fields for one prospect, as handed to the research pipeline."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    full_address: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    title: str | None = None
    notes: str | None = None


class AddressQuality(str, Enum):
    """Research-readiness of a prospect's identifying data."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INSUFFICIENT = "INSUFFICIENT"


class AddressQualityReport(BaseModel):
    """Address quality score with the fields that drove it."""

    quality: AddressQuality
    score: int
    max_score: int = 10
    missing: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DuplicateReport(BaseModel):
    """Duplicate rows found in a submission (first occurrence is kept)."""

    duplicate_indices: list[int] = Field(default_factory=list)
    unique_count: int = 0
    duplicate_groups: dict[str, list[int]] = Field(default_factory=dict)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_indices)


def normalize_string(value: Any) -> str | None:
    """Trim a value; empty or missing values become None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def normalize_prospect_address(prospect: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize prospect address data.

    Trims name and address components, drops empty values, and derives
    ``full_address`` from the components when it is not supplied.

    Args:
        prospect: Raw prospect mapping

    Returns:
        dict: Normalized copy with name, address, city, state, zip, full_address
    """
    address = normalize_string(prospect.get("address"))
    city = normalize_string(prospect.get("city"))
    state = normalize_string(prospect.get("state"))
    zip_code = normalize_string(prospect.get("zip"))

    components = [part for part in (address, city, state, zip_code) if part]
    constructed = ", ".join(components) if components else None

    normalized = dict(prospect)
    normalized.update(
        name=normalize_string(prospect.get("name")) or "",
        address=address,
        city=city,
        state=state,
        zip=zip_code,
        full_address=normalize_string(prospect.get("full_address")) or constructed,
    )
    return normalized


def merge_item_input(
    input_data: Mapping[str, Any] | None,
    prospect_address: str | None = None,
    prospect_city: str | None = None,
    prospect_state: str | None = None,
    prospect_zip: str | None = None,
) -> ProspectInput:
    """
    Reconcile an item's JSON payload with its denormalized columns.

    JSON serialization can silently drop optional keys, so every address
    component prefers the payload value and falls back to the column.

    Args:
        input_data: Item ``input_data`` JSON
        prospect_address: Denormalized street address column
        prospect_city: Denormalized city column
        prospect_state: Denormalized state column
        prospect_zip: Denormalized zip column

    Returns:
        ProspectInput: Normalized prospect ready for the pipeline
    """
    payload = dict(input_data or {})
    fallbacks = {
        "address": prospect_address,
        "city": prospect_city,
        "state": prospect_state,
        "zip": prospect_zip,
    }
    for field in ADDRESS_FIELDS:
        payload[field] = normalize_string(payload.get(field)) or normalize_string(fallbacks[field])

    return ProspectInput.model_validate(normalize_prospect_address(payload))


def validate_prospect_data(prospect: Mapping[str, Any]) -> list[str]:
    """
    Check the minimum fields needed for research.

    Args:
        prospect: Normalized prospect mapping

    Returns:
        list[str]: Validation errors (empty when valid)
    """
    errors: list[str] = []
    if not normalize_string(prospect.get("name")):
        errors.append("Name is required")

    has_address = bool(
        normalize_string(prospect.get("address"))
        or normalize_string(prospect.get("full_address"))
        or (normalize_string(prospect.get("city")) and normalize_string(prospect.get("state")))
    )
    if not has_address:
        errors.append("Address information is required (address, city/state, or full_address)")
    return errors


def score_address_quality(prospect: Mapping[str, Any]) -> AddressQualityReport:
    """
    Score how well a prospect can be researched.

    Name is worth 3 points, street address, city and state 2 each, zip 1.

    Args:
        prospect: Normalized prospect mapping

    Returns:
        AddressQualityReport: Quality band, score, missing fields and warnings
    """
    missing: list[str] = []
    warnings: list[str] = []
    score = 0

    name = normalize_string(prospect.get("name"))
    if name:
        score += 3
        if name.lower() in COMMON_NAMES:
            warnings.append("Common name may result in less accurate research")
    else:
        missing.append("name")

    if normalize_string(prospect.get("address")):
        score += 2
    elif not normalize_string(prospect.get("full_address")):
        missing.append("street address")

    if normalize_string(prospect.get("city")):
        score += 2
    else:
        missing.append("city")

    if normalize_string(prospect.get("state")):
        score += 2
    else:
        missing.append("state")

    if normalize_string(prospect.get("zip")):
        score += 1

    if score >= 8:
        quality = AddressQuality.HIGH
    elif score >= 5:
        quality = AddressQuality.MEDIUM
    elif score >= 3:
        quality = AddressQuality.LOW
        warnings.append("Limited address data may result in incomplete research")
    else:
        quality = AddressQuality.INSUFFICIENT
        warnings.append("Insufficient data for reliable research")

    return AddressQualityReport(quality=quality, score=score, missing=missing, warnings=warnings)


def generate_prospect_hash(prospect: Mapping[str, Any]) -> str:
    """Duplicate-detection key: lowercase ``name|city|state``."""
    parts = [
        (normalize_string(prospect.get(field)) or "").lower()
        for field in ("name", "city", "state")
    ]
    return " ".join("|".join(parts).split())


def detect_duplicates(prospects: list[Mapping[str, Any]]) -> DuplicateReport:
    """
    Find duplicate prospects in a submission.

    Args:
        prospects: Normalized prospects in submission order

    Returns:
        DuplicateReport: Indices of every repeat after the first occurrence
    """
    seen: dict[str, int] = {}
    report = DuplicateReport()

    for index, prospect in enumerate(prospects):
        key = generate_prospect_hash(prospect)
        if key in seen:
            report.duplicate_indices.append(index)
            report.duplicate_groups.setdefault(key, [seen[key]]).append(index)
        else:
            seen[key] = index

    report.unique_count = len(prospects) - report.duplicate_count
    return report
