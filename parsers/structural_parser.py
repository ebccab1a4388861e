"""
Structural Logbook Parser - For tabular, ruled delivery logbooks.

The paper logbook is a table: one delivery per row, with date and time
columns. OCR turns each row into one line of text, with wide gaps where the
cell borders were.

How a line is read:
1. Lines shorter than 3 characters are skipped
2. Everything except digits, '.', ':', '/' and whitespace is blanked out
   (handwriting produces a lot of letter-shaped noise)
3. The line is cut into columns at every gap of 2+ spaces or a tab
4. The leftmost column holding a date and the leftmost holding a time win
5. The date is written as DD/01/YYYY - the logbook only shows day and year,
   so the month is always January. A 3-digit year like "024" becomes "2024".

Names are NOT read from the line: the driver and client are placeholders
handed out round-robin from the roster, and are flagged as such so the
reviewer knows to correct them.
"""

import re
from typing import List, Optional

from loguru import logger

from config import MAX_STRUCTURAL_CANDIDATES, PATTERNS, STRUCTURAL_MIN_LINE_LENGTH
from parsers.base_parser import BaseLogbookParser
from parsers.confidence import StructuralConfidenceScorer
from parsers.roster_matcher import RosterMatcher
from schemas.logbook_schema import CandidateEntry, NameSource


class StructuralLogbookParser(BaseLogbookParser):
    """Digit-column parser with placeholder names."""

    strategy_name = "structural"

    def __init__(self, matcher: RosterMatcher, scorer: Optional[StructuralConfidenceScorer] = None,
                 max_candidates: int = MAX_STRUCTURAL_CANDIDATES):
        super().__init__()
        self.matcher = matcher
        self.scorer = scorer or StructuralConfidenceScorer()
        self.max_candidates = max_candidates

        self.noise_pattern = re.compile(PATTERNS["structural_noise"])
        self.date_pattern = re.compile(PATTERNS["structural_date"])
        self.time_pattern = re.compile(PATTERNS["structural_time"])

    def parse(self, ocr_text: str) -> List[CandidateEntry]:
        """
        Parse OCR text from a tabular logbook.

        Args:
            ocr_text: Raw multiline text from the OCR engine

        Returns:
            At most max_candidates entries, in line order
        """

        candidates = []

        for source_line_index, line_index, line in self._iter_lines(ocr_text):
            if len(candidates) >= self.max_candidates:
                logger.info(f"Reached the limit of {self.max_candidates} entries, ignoring the rest")
                break

            candidate = self._parse_line(line, line_index, source_line_index)
            if candidate:
                candidates.append(candidate)

        logger.info(f"Structural parser extracted {len(candidates)} entries")
        return candidates

    def _parse_line(self, line: str, line_index: int, source_line_index: int) -> Optional[CandidateEntry]:
        if len(line) < STRUCTURAL_MIN_LINE_LENGTH:
            return None

        clean_line = self.noise_pattern.sub(' ', line).strip()
        columns = self._split_cells(clean_line)

        found_date = ""
        found_time = ""
        for column in columns:
            if not found_date:
                date_match = self.date_pattern.search(column)
                if date_match:
                    found_date = self._normalize_date(*date_match.groups())
            if not found_time:
                time_match = self.time_pattern.search(column)
                if time_match:
                    found_time = self._format_time(int(time_match.group(1)), int(time_match.group(2)))

        if not found_date and not found_time:
            logger.debug(f"Line {source_line_index}: no date or time, skipped")
            return None

        confidence = self.scorer.score(bool(found_date), bool(found_time), len(columns))

        if not found_time:
            found_time = self._placeholder_time(line_index)

        driver_name, client_name = self.matcher.placeholder(line_index)

        return CandidateEntry(
            date=found_date,
            time=found_time,
            driver_name=driver_name,
            client_name=client_name,
            confidence=confidence,
            source_line_index=source_line_index,
            name_source=NameSource.PLACEHOLDER,
        )

    @staticmethod
    def _normalize_date(day: str, year: str) -> str:
        if len(year) == 3:
            year = f"2{year}"  # "024" -> "2024"
        return f"{day.zfill(2)}/01/{year}"

    def _placeholder_time(self, line_index: int) -> str:
        """Spread rows over the working day: 08:00, 09:15, 10:30, ..."""
        return self._format_time(8 + (line_index % 10), (line_index * 15) % 60)
