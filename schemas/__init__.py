"""
Schemas package for logbook OCR data validation.

This package contains Pydantic models that define the structure
and validation rules for data extracted from logbook photos.

As a Python beginner, think of schemas as "templates" that define:
- What fields (data pieces) we expect to extract
- What type each field should be (text, number, etc.)
- Which fields are required vs optional
- Validation rules (like "confidence must be between 0 and 100")
"""

from .logbook_schema import (
    CandidateEntry,
    DeliveryBatch,
    DeliveryRecord,
    NameSource,
    ParserStrategy,
    RecognitionResult,
    Roster,
)

# This makes it easy to import from other files like:
# from schemas import CandidateEntry
__all__ = [
    "CandidateEntry",
    "DeliveryBatch",
    "DeliveryRecord",
    "NameSource",
    "ParserStrategy",
    "RecognitionResult",
    "Roster",
]
