"""
Pytest configuration and fixtures for the logbook OCR tests.
"""

import sys
from datetime import date
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ledger import InMemoryLedger
from review_session import ReviewSession
from schemas import CandidateEntry, NameSource, RecognitionResult, Roster
from recognition import TextRecognizer


# =============================================================================
# Roster & Sample Text
# =============================================================================

@pytest.fixture
def roster() -> Roster:
    return Roster(
        drivers=["Suresh Kumar", "Ramesh Patel", "Mukesh Singh", "Dinesh Shah", "Rajesh Modi"],
        clients=["Hemantbhai", "Ravi Industries", "Shiv Enterprises", "Prakash Trading", "Vijay Corporation"],
    )


@pytest.fixture
def tabular_log_text() -> str:
    """OCR output from a ruled logbook page (with typical OCR noise)."""
    return "\n".join([
        "Date    Time    Driver    Client    Sign",
        "12.024    09:30    Suresh    Hemant    ~~",
        "",
        "13.024    10:15    Ramesh    Ravi",
        "14 024    Mukesh    Shiv",
        "ab",
        "    11:45    Dinesh    Prakash",
    ])


@pytest.fixture
def freetext_log_text() -> str:
    """OCR output from a logbook kept as loose handwritten lines."""
    return "\n".join([
        "Water delivery register - March",
        "12/03/2024   Suresh   Ravi Industries   10:30   Rs 450",
        "12/03/2024   Ramesh   Shiv   10:30   Rs 300",
        "13-3-2024  mukesh  vijay  11:05  ₹600",
        "short",
        "Delivered 14.3.24 at 9:15 to someone",
        "Notes    call back    tomorrow",
    ])


# =============================================================================
# Review Session
# =============================================================================

@pytest.fixture
def fixed_today() -> date:
    return date(2026, 10, 18)


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def session(ledger, fixed_today) -> ReviewSession:
    return ReviewSession(ledger, today=lambda: fixed_today)


@pytest.fixture
def make_candidate():
    """Factory for candidate entries with sensible defaults."""

    def _make(**overrides) -> CandidateEntry:
        values = dict(
            date="12/01/2024",
            time="09:30",
            driver_name="Suresh Kumar",
            client_name="Hemantbhai",
            confidence=90,
            source_line_index=0,
            name_source=NameSource.PLACEHOLDER,
        )
        values.update(overrides)
        return CandidateEntry(**values)

    return _make


# =============================================================================
# OCR Engine
# =============================================================================

class FakeRecognizer(TextRecognizer):
    """Returns canned text instead of calling a real OCR engine."""

    engine_name = "fake"

    def __init__(self, text: str = "", error: Exception = None):
        self.text = text
        self.error = error
        self.images = []

    def recognize(self, image) -> RecognitionResult:
        self.images.append(image)
        if self.error:
            raise self.error
        return RecognitionResult(text=self.text, engine_confidence=0.9, engine=self.engine_name)


@pytest.fixture
def fake_recognizer_cls():
    return FakeRecognizer


@pytest.fixture
def logbook_photo() -> np.ndarray:
    """A small RGB 'photo': light paper with a dark stroke."""
    image = np.full((20, 30, 3), 200, dtype=np.uint8)
    image[5:8, 5:25] = (30, 30, 60)
    return image
