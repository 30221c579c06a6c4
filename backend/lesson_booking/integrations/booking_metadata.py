"""
Booking metadata stored inside a calendar event description.

The calendar has no structured custom fields, so the description carries a
human-readable summary followed by a tagged, versioned JSON block:

    ---
    BOOKING-METADATA v1:{"schema_version": 1, "booking_id": "MZK-...", ...}

Descriptions written before versioning used an untagged ``METADATA:{json}``
line; those are still read and treated as schema version 1.
"""

from __future__ import annotations

from datetime import datetime
import json
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

CURRENT_SCHEMA_VERSION = 1
METADATA_SEPARATOR = "---"
METADATA_TAG = "BOOKING-METADATA"

_TAGGED_RE = re.compile(rf"{METADATA_TAG} v(\d+):(.+)")
_LEGACY_RE = re.compile(r"METADATA:(.+)")


class MetadataDecodeError(ValueError):
    """The description has no readable metadata block."""


class BookingMetadata(BaseModel):
    """Booking fields persisted in the event description."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    schema_version: int = CURRENT_SCHEMA_VERSION
    booking_id: str = Field(alias="bookingId")
    student_name: str = Field(alias="studentName")
    student_email: str = Field(alias="studentEmail")
    student_timezone: str = Field(alias="studentTimezone")
    note: str = ""
    created_at: datetime = Field(alias="createdAt")
    modification_count: int = Field(0, ge=0, alias="modificationCount")
    last_modified_at: Optional[datetime] = Field(None, alias="lastModifiedAt")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def _single_line(value: str) -> str:
    return " ".join(value.split())


def render_description(metadata: BookingMetadata, *, no_note_label: str = "None") -> str:
    """Human-readable event description followed by the metadata block."""
    lines = [
        "Booking details",
        "",
        f"Student: {_single_line(metadata.student_name)}",
        f"Email: {metadata.student_email}",
        f"Booking ID: {metadata.booking_id}",
        "",
        f"Note: {_single_line(metadata.note) or no_note_label}",
        "",
        METADATA_SEPARATOR,
        f"{METADATA_TAG} v{metadata.schema_version}:{metadata.to_json()}",
    ]
    return "\n".join(lines)


def parse_description(description: Optional[str]) -> BookingMetadata:
    """
    Extract booking metadata from an event description.

    Raises:
        MetadataDecodeError: If no block is present, the JSON is corrupt, the
            schema version is unknown, or required fields are missing.
    """
    # Only the final line is metadata; earlier lines may hold student text
    last_line = (description or "").rstrip().split("\n")[-1].strip()
    tagged = _TAGGED_RE.fullmatch(last_line)
    if tagged:
        version = int(tagged.group(1))
        raw = tagged.group(2)
    else:
        legacy = _LEGACY_RE.fullmatch(last_line)
        if not legacy:
            raise MetadataDecodeError("No booking metadata block in event description")
        version = 1
        raw = legacy.group(1)

    if version > CURRENT_SCHEMA_VERSION:
        raise MetadataDecodeError(f"Unsupported booking metadata version {version}")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MetadataDecodeError(f"Corrupt booking metadata JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MetadataDecodeError("Booking metadata must be a JSON object")

    payload["schema_version"] = version
    try:
        return BookingMetadata.model_validate(payload)
    except ValidationError as exc:
        raise MetadataDecodeError(f"Invalid booking metadata: {exc.error_count()} errors") from exc


def contains_marker(description: Optional[str], booking_id: str) -> bool:
    return bool(description) and booking_id in description
