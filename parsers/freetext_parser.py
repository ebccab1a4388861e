"""
Free-Text Logbook Parser - For logbooks written as loose lines of text.

Here a delivery line looks more like
    "12/03/2024   Suresh   Ravi Industries   10:30   Rs 450"
than a ruled table row. Dates and times are matched directly in the raw
line, names are looked up in the roster, and amounts are picked up from a
rupee sign or an "Rs" prefix.
"""

import re
from typing import List, Optional

from loguru import logger

from config import (
    CURRENCY_PATTERN, FREETEXT_MIN_LINE_LENGTH, FREETEXT_MIN_SEGMENTS,
    PATTERNS, UNKNOWN_CLIENT, UNKNOWN_DRIVER,
)
from parsers.base_parser import BaseLogbookParser
from parsers.confidence import FreeTextConfidenceScorer
from parsers.deduplication import deduplicate_by_date_time
from parsers.roster_matcher import RosterMatcher
from schemas.logbook_schema import CandidateEntry, NameSource


class FreeTextLogbookParser(BaseLogbookParser):
    """Raw-line parser with roster name matching and (date, time) dedup."""

    strategy_name = "freetext"

    def __init__(self, matcher: RosterMatcher, scorer: Optional[FreeTextConfidenceScorer] = None):
        super().__init__()
        self.matcher = matcher
        self.scorer = scorer or FreeTextConfidenceScorer()

        self.date_pattern = re.compile(PATTERNS["freetext_date"])
        self.time_pattern = re.compile(PATTERNS["freetext_time"])
        self.amount_pattern = re.compile(CURRENCY_PATTERN)

    def parse(self, ocr_text: str) -> List[CandidateEntry]:
        """
        Parse OCR text from an unstructured logbook.

        Args:
            ocr_text: Raw multiline text from the OCR engine

        Returns:
            Candidate entries with no two sharing the same (date, time)
        """

        candidates = []
        for source_line_index, line_index, line in self._iter_lines(ocr_text):
            candidate = self._parse_line(line, line_index, source_line_index)
            if candidate:
                candidates.append(candidate)

        unique = deduplicate_by_date_time(candidates)
        logger.info(f"Free-text parser extracted {len(unique)} entries")
        return unique

    def _parse_line(self, line: str, line_index: int, source_line_index: int) -> Optional[CandidateEntry]:
        if len(line) < FREETEXT_MIN_LINE_LENGTH:
            return None

        date_match = self.date_pattern.search(line)
        time_match = self.time_pattern.search(line)
        segments = self._split_cells(line.strip())

        if not ((date_match and time_match) or len(segments) >= FREETEXT_MIN_SEGMENTS):
            logger.debug(f"Line {source_line_index}: does not look like a delivery row, skipped")
            return None

        # Nothing in the whole line: try each segment on its own
        if not date_match and not time_match:
            date_match = self._search_segments(self.date_pattern, segments)
            time_match = self._search_segments(self.time_pattern, segments)

        found_date = self._normalize_date(*date_match.groups()) if date_match else ""
        found_time = (
            self._format_time(int(time_match.group(1)), int(time_match.group(2))) if time_match else ""
        )

        if not found_date and not found_time:
            logger.debug(f"Line {source_line_index}: no date or time, skipped")
            return None

        driver_name = self.matcher.match_driver(segments, line)
        client_name = self.matcher.match_client(segments, line)
        name_source = NameSource.MATCHED if (driver_name or client_name) else NameSource.UNKNOWN

        confidence = self.scorer.score(
            bool(found_date), bool(found_time), len(segments), line=line, line_index=line_index
        )

        return CandidateEntry(
            date=found_date,
            time=found_time,
            driver_name=driver_name or UNKNOWN_DRIVER,
            client_name=client_name or UNKNOWN_CLIENT,
            amount=self._extract_amount(line),
            confidence=confidence,
            source_line_index=source_line_index,
            name_source=name_source,
        )

    @staticmethod
    def _search_segments(pattern, segments: List[str]):
        for segment in segments:
            match = pattern.search(segment)
            if match:
                return match
        return None

    @staticmethod
    def _normalize_date(day: str, month: str, year: str) -> str:
        return f"{day.zfill(2)}/{month.zfill(2)}/{year}"

    def _extract_amount(self, line: str) -> Optional[float]:
        match = self.amount_pattern.search(line)
        return float(match.group(1)) if match else None
