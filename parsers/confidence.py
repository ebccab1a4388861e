"""
Confidence scoring for candidate entries.

Each strategy has its own scoring rule (see CONFIDENCE_RULES in config.py).
Scores are whole numbers and never exceed the cap of 95 - a parsed logbook
line is never "certain" until a person has looked at it.

The free-text rule adds a small jitter so entries from the same logbook do
not all show identical scores. The jitter comes from a hash of the line, so
the same text always gets the same score.
"""

import hashlib

from config import CONFIDENCE_RULES


def _clamp(score: int) -> int:
    return max(0, min(CONFIDENCE_RULES["cap"], score))


class StructuralConfidenceScorer:
    """Scores lines from the tabular parser."""

    def __init__(self, rules=None):
        self.rules = rules or CONFIDENCE_RULES["structural"]

    def score(self, has_date: bool, has_time: bool, column_count: int) -> int:
        score = self.rules["base"]
        if has_date:
            score += self.rules["date_bonus"]
        if has_time:
            score += self.rules["time_bonus"]
        if column_count >= self.rules["min_columns"]:
            score += self.rules["columns_bonus"]
        return _clamp(score)


class FreeTextConfidenceScorer:
    """Scores lines from the free-text parser, with deterministic jitter."""

    def __init__(self, jitter: bool = True, seed: str = "", rules=None):
        self.jitter = jitter
        self.seed = seed
        self.rules = rules or CONFIDENCE_RULES["freetext"]

    def jitter_for(self, line: str, line_index: int) -> int:
        """Return a value in [0, jitter_span) derived from the line text and position."""
        if not self.jitter:
            return 0
        digest = hashlib.sha256(f"{self.seed}:{line_index}:{line}".encode('utf-8')).hexdigest()
        return int(digest, 16) % self.rules["jitter_span"]

    def score(self, has_date: bool, has_time: bool, segment_count: int,
              line: str = "", line_index: int = 0) -> int:
        score = self.rules["base"]
        if has_date:
            score += self.rules["date_bonus"]
        if has_time:
            score += self.rules["time_bonus"]
        if segment_count >= self.rules["min_segments"]:
            score += self.rules["segments_bonus"]
        return _clamp(score + self.jitter_for(line, line_index))
