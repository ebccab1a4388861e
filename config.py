"""
Configuration file for the Logbook OCR Pipeline

This file contains all the customizable settings for the logbook extraction
pipeline. You can modify these settings without changing the core code.

For Python beginners:
- This centralizes all configuration in one place
- Easy to modify the driver/client rosters and parsing rules
- Values in the .env file override the defaults at the bottom of this file
"""

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from schemas.logbook_schema import ParserStrategy, Roster

# =============================================================================
# ROSTER INFORMATION
# =============================================================================

# Known drivers - used for round-robin placeholder names (structural parser)
# and for first-name matching (free-text parser).
# Replace these with the roster from your deliveries ledger.
KNOWN_DRIVERS = [
    "Suresh Kumar",
    "Ramesh Patel",
    "Mukesh Singh",
    "Dinesh Shah",
    "Rajesh Modi",
]

# Known clients - the free-text parser matches on the first word of each name
KNOWN_CLIENTS = [
    "Hemantbhai",
    "Ravi Industries",
    "Shiv Enterprises",
    "Prakash Trading",
    "Vijay Corporation",
]

UNKNOWN_DRIVER = "Unknown Driver"
UNKNOWN_CLIENT = "Unknown Client"

# =============================================================================
# IMAGE CONFIGURATION
# =============================================================================

# Logbook photos we accept for upload
SUPPORTED_IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.tif'}

# Gray levels at or above this value become white, everything else black
BINARIZE_THRESHOLD = 128

# ITU-R 601 luminance weights (R, G, B)
LUMINANCE_WEIGHTS = (0.299, 0.587, 0.114)

# =============================================================================
# PARSING CONFIGURATION
# =============================================================================

# Lines shorter than this are skipped before any matching
STRUCTURAL_MIN_LINE_LENGTH = 3
FREETEXT_MIN_LINE_LENGTH = 10

# Upper bound on candidates the structural parser hands to review
MAX_STRUCTURAL_CANDIDATES = 35

# A free-text line with this many segments qualifies even without date+time
FREETEXT_MIN_SEGMENTS = 3

# Regex patterns used by the two parsing strategies
PATTERNS = {
    # Structural parser (applied to digit-only cleaned columns)
    "structural_noise": r'[^\d.:\s/]',
    "structural_date": r'(\d{1,2})[.\s]*(\d{2,4})',
    "structural_time": r'(\d{1,2}):(\d{2})',

    # Free-text parser (applied to the raw line)
    "freetext_date": r'(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})',
    "freetext_time": r'(\d{1,2}):(\d{2})',

    # Column / segment boundaries: 2+ whitespace characters or tab runs
    "cell_boundary": r'\s{2,}|\t+',
}

# Rupee sign or "Rs" / "Rs." prefix followed by a digit run
CURRENCY_PATTERN = r'(?:₹|Rs\.?)\s*(\d+(?:\.\d+)?)'

# =============================================================================
# CONFIDENCE SCORING
# =============================================================================

CONFIDENCE_RULES = {
    "structural": {
        "base": 40,
        "date_bonus": 30,
        "time_bonus": 30,
        "columns_bonus": 10,
        "min_columns": 2,
    },
    "freetext": {
        "base": 50,
        "date_bonus": 20,
        "time_bonus": 20,
        "segments_bonus": 10,
        "min_segments": FREETEXT_MIN_SEGMENTS,
        "jitter_span": 10,  # jitter is drawn from [0, jitter_span)
    },
    "cap": 95,
}

# =============================================================================
# PIPELINE SETTINGS (from environment / .env)
# =============================================================================


class PipelineSettings(BaseModel):
    """Runtime settings, loaded from environment variables by load_settings()."""

    parser_strategy: ParserStrategy = Field(
        ParserStrategy.STRUCTURAL, description="Which logbook parser to use"
    )
    ocr_engine: str = Field("google", description="Text recognition engine: google or tesseract")
    tesseract_lang: str = Field("eng+hin", description="Tesseract language packs")
    tesseract_cmd: Optional[str] = Field(None, description="Path to the tesseract binary")
    fuzzy_threshold: Optional[int] = Field(
        None, ge=0, le=100, description="Fuzzy name match threshold (disabled when unset)"
    )
    confidence_jitter: bool = Field(True, description="Add deterministic jitter to free-text scores")
    jitter_seed: str = Field("", description="Salt mixed into the jitter digest")
    drivers: List[str] = Field(default_factory=lambda: list(KNOWN_DRIVERS))
    clients: List[str] = Field(default_factory=lambda: list(KNOWN_CLIENTS))

    def roster(self) -> Roster:
        return Roster(drivers=self.drivers, clients=self.clients)


def _split_names(value: Optional[str], default: List[str]) -> List[str]:
    """Parse a comma-separated roster override, e.g. 'Suresh Kumar, Ramesh Patel'."""
    if not value:
        return list(default)
    return [name.strip() for name in value.split(',') if name.strip()]


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings() -> PipelineSettings:
    """
    Build PipelineSettings from the environment.

    Reads the .env file first (if present), then environment variables:
    LOGBOOK_PARSER_STRATEGY, OCR_ENGINE, TESSERACT_LANG, TESSERACT_CMD,
    LOGBOOK_FUZZY_THRESHOLD, LOGBOOK_CONFIDENCE_JITTER, LOGBOOK_JITTER_SEED,
    LOGBOOK_DRIVERS and LOGBOOK_CLIENTS.

    Returns:
        Validated PipelineSettings
    """

    load_dotenv()

    fuzzy_threshold = os.getenv('LOGBOOK_FUZZY_THRESHOLD')

    return PipelineSettings(
        parser_strategy=os.getenv('LOGBOOK_PARSER_STRATEGY', ParserStrategy.STRUCTURAL.value),
        ocr_engine=os.getenv('OCR_ENGINE', 'google').lower(),
        tesseract_lang=os.getenv('TESSERACT_LANG', 'eng+hin'),
        tesseract_cmd=os.getenv('TESSERACT_CMD') or None,
        fuzzy_threshold=int(fuzzy_threshold) if fuzzy_threshold else None,
        confidence_jitter=_env_flag('LOGBOOK_CONFIDENCE_JITTER', True),
        jitter_seed=os.getenv('LOGBOOK_JITTER_SEED', ''),
        drivers=_split_names(os.getenv('LOGBOOK_DRIVERS'), KNOWN_DRIVERS),
        clients=_split_names(os.getenv('LOGBOOK_CLIENTS'), KNOWN_CLIENTS),
    )
