"""Shared line handling for the logbook parsing strategies."""

import re
from abc import ABC, abstractmethod
from typing import Iterator, List, Tuple

from config import PATTERNS
from schemas.logbook_schema import CandidateEntry


class BaseLogbookParser(ABC):
    """
    Common behaviour of both parsing strategies.

    Both strategies work line by line. Blank lines are skipped; every other
    line gets a "line index" (its position among the non-blank lines) which
    drives placeholder names and placeholder times, and keeps its position
    in the raw OCR text as source_line_index for traceability.
    """

    strategy_name = "base"

    def __init__(self):
        self.cell_boundary = re.compile(PATTERNS["cell_boundary"])

    @abstractmethod
    def parse(self, ocr_text: str) -> List[CandidateEntry]:
        """Turn raw OCR text into candidate entries."""
        pass

    def _iter_lines(self, ocr_text: str) -> Iterator[Tuple[int, int, str]]:
        """Yield (source_line_index, line_index, line) for every non-blank line."""
        line_index = 0
        for source_line_index, line in enumerate((ocr_text or "").splitlines()):
            if not line.strip():
                continue
            yield source_line_index, line_index, line
            line_index += 1

    def _split_cells(self, text: str) -> List[str]:
        """Split on 2+ whitespace characters or tabs (a stand-in for table cell borders)."""
        return [cell for cell in self.cell_boundary.split(text) if cell.strip()]

    @staticmethod
    def _format_time(hour: int, minute: int) -> str:
        return f"{hour:02d}:{minute:02d}"
