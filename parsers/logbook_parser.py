"""
Logbook Parser - One entry point for both parsing strategies.

Which strategy fits depends on how the paper logbook is kept:
- ParserStrategy.STRUCTURAL for ruled tables (the default)
- ParserStrategy.FREETEXT for loose handwritten lines

The strategy is a setting (LOGBOOK_PARSER_STRATEGY), not something the
parser guesses from the text.
"""

from typing import List, Optional

from loguru import logger

from parsers.confidence import FreeTextConfidenceScorer, StructuralConfidenceScorer
from parsers.freetext_parser import FreeTextLogbookParser
from parsers.roster_matcher import RosterMatcher
from parsers.structural_parser import StructuralLogbookParser
from schemas.logbook_schema import CandidateEntry, ParserStrategy, Roster


class LogbookParser:
    """
    Turns raw OCR text into candidate entries using the configured strategy.

    Example:
        parser = LogbookParser(ParserStrategy.FREETEXT, roster)
        entries = parser.parse(ocr_text)
    """

    def __init__(self, strategy: ParserStrategy = ParserStrategy.STRUCTURAL,
                 roster: Optional[Roster] = None, fuzzy_threshold: Optional[int] = None,
                 confidence_jitter: bool = True, jitter_seed: str = ""):
        self.strategy = ParserStrategy(strategy)
        self.matcher = RosterMatcher(roster or Roster(), fuzzy_threshold=fuzzy_threshold)

        if self.strategy == ParserStrategy.STRUCTURAL:
            self._parser = StructuralLogbookParser(self.matcher, StructuralConfidenceScorer())
        else:
            self._parser = FreeTextLogbookParser(
                self.matcher, FreeTextConfidenceScorer(jitter=confidence_jitter, seed=jitter_seed)
            )

        logger.debug(f"Logbook parser ready (strategy: {self.strategy.value})")

    @classmethod
    def from_settings(cls, settings, roster: Optional[Roster] = None) -> "LogbookParser":
        """Build a parser from PipelineSettings; an explicit roster overrides the configured one."""
        return cls(
            strategy=settings.parser_strategy,
            roster=roster or settings.roster(),
            fuzzy_threshold=settings.fuzzy_threshold,
            confidence_jitter=settings.confidence_jitter,
            jitter_seed=settings.jitter_seed,
        )

    def parse(self, ocr_text: str) -> List[CandidateEntry]:
        return self._parser.parse(ocr_text)
