"""
Logbook Schema - Defines the structure of data flowing through the pipeline.

This file uses Pydantic to create "data models" - templates that define
exactly what a candidate entry, a confirmed delivery, and an OCR result
look like.

For Python beginners:
- Pydantic automatically validates data types (str, int, float, etc.)
- Field(...) marks a required field, Field(None) an optional one
- Validators run when a model is created and can clean or reject data
- CandidateEntry is what the parser produces; DeliveryRecord is what the
  deliveries ledger receives after a person has reviewed the entries
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ParserStrategy(str, Enum):
    """The two logbook parsing strategies."""

    STRUCTURAL = "structural"  # tabular logs, placeholder names
    FREETEXT = "freetext"      # unstructured logs, roster name matching


class NameSource(str, Enum):
    """Where the driver/client names of a candidate came from."""

    PLACEHOLDER = "placeholder"  # round-robin roster assignment, not read from the line
    MATCHED = "matched"          # found in the line by roster matching
    UNKNOWN = "unknown"          # nothing matched
    EDITED = "edited"            # corrected by the reviewer


def new_entry_id() -> str:
    return f"entry-{uuid.uuid4().hex[:12]}"


class Roster(BaseModel):
    """Known drivers and clients, normally supplied by the deliveries ledger."""

    drivers: List[str] = Field(default_factory=list, description="Full driver names")
    clients: List[str] = Field(default_factory=list, description="Full client names")

    @field_validator('drivers', 'clients')
    @classmethod
    def drop_blank_names(cls, v):
        """Remove empty names and surrounding whitespace"""
        return [name.strip() for name in v if name and name.strip()]


class CandidateEntry(BaseModel):
    """
    One delivery row extracted from a logbook photo, waiting for review.

    This is like a "row" in the review table. Every field can still be
    corrected by the reviewer before it becomes a DeliveryRecord.
    """

    id: str = Field(default_factory=new_entry_id, description="Unique within a review session")
    date: str = Field("", description="Normalized date string (DD/MM/YYYY-like) or empty")
    time: str = Field("", description="HH:MM or empty")
    driver_name: str = Field(..., description="Driver name (may be a placeholder)")
    client_name: str = Field(..., description="Client name (may be a placeholder)")
    amount: Optional[float] = Field(None, description="Amount in rupees, if found")
    confidence: int = Field(..., ge=0, le=100, description="Parser confidence 0-100")
    source_line_index: int = Field(..., ge=0, description="Line of the OCR text this came from")
    name_source: NameSource = Field(NameSource.UNKNOWN, description="How the names were resolved")

    @model_validator(mode='after')
    def require_date_or_time(self):
        """A candidate without both a date and a time carries no delivery information"""
        if not self.date and not self.time:
            raise ValueError('Candidate entry needs a date or a time')
        return self

    @property
    def has_placeholder_names(self) -> bool:
        return self.name_source == NameSource.PLACEHOLDER


class DeliveryRecord(BaseModel):
    """
    A confirmed delivery, in the format the deliveries ledger accepts.

    The ledger assigns its own id when it stores the record.
    """

    date: str = Field(..., description="Delivery date (YYYY-MM-DD)")
    time: str = Field("", description="Delivery time (HH:MM)")
    driver_name: str = Field(..., description="Driver name")
    client_name: str = Field(..., description="Client name")
    amount: Optional[float] = Field(None, description="Amount in rupees")
    notes: str = Field(..., description="Extraction notes, including the confidence")
    date_defaulted: bool = Field(False, description="True when the date was unreadable and today was used")

    @field_validator('date')
    @classmethod
    def check_iso_date(cls, v):
        """Ledger dates must be YYYY-MM-DD"""
        datetime.strptime(v, '%Y-%m-%d')
        return v


class DeliveryBatch(BaseModel):
    """All records confirmed from one logbook photo, handed to the ledger as a unit."""

    records: List[DeliveryRecord] = Field(default_factory=list)
    source_file: Optional[str] = Field(None, description="Original image filename")
    confirmed_at: datetime = Field(default_factory=datetime.now)

    def __len__(self) -> int:
        return len(self.records)


class RecognitionResult(BaseModel):
    """Raw text returned by an OCR engine."""

    text: str = Field("", description="Full recognized text")
    engine_confidence: float = Field(0.0, description="Engine confidence score (0-1)")
    engine: str = Field(..., description="Name of the OCR engine")

    @field_validator('engine_confidence')
    @classmethod
    def validate_confidence(cls, v):
        """Ensure confidence score is between 0 and 1"""
        if v < 0 or v > 1:
            raise ValueError('OCR confidence must be between 0 and 1')
        return v
