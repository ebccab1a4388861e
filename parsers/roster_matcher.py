"""
Roster Matcher - Resolves driver and client names against the known roster.

Two very different policies live here:
- placeholder(): round-robin assignment used by the structural parser. The
  names are NOT read from the logbook; they only fill the review form and
  are labelled as placeholders.
- match_driver() / match_client(): substring search used by the free-text
  parser. Each roster name is reduced to its first word ("Ravi Industries"
  -> "ravi") and looked for, case-insensitively, in each segment and then in
  the whole line. First match wins.

For Python beginners:
- fuzzywuzzy compares two strings and returns a similarity score (0-100)
- It is only used as an optional fallback when the plain search finds
  nothing, and only when a threshold has been configured
"""

from typing import Dict, List, Optional, Tuple

from fuzzywuzzy import fuzz, process
from loguru import logger

from config import UNKNOWN_CLIENT, UNKNOWN_DRIVER
from schemas.logbook_schema import Roster


def _first_tokens(names: List[str]) -> Dict[str, str]:
    """Map lower-cased first word -> full roster name (first name listed wins)."""
    tokens = {}
    for name in names:
        parts = name.split()
        if parts:
            tokens.setdefault(parts[0].lower(), name)
    return tokens


class RosterMatcher:
    """Name resolution against an injected roster of drivers and clients."""

    def __init__(self, roster: Roster, fuzzy_threshold: Optional[int] = None):
        self.roster = roster
        self.fuzzy_threshold = fuzzy_threshold
        self._driver_tokens = _first_tokens(roster.drivers)
        self._client_tokens = _first_tokens(roster.clients)

    def placeholder(self, line_index: int) -> Tuple[str, str]:
        """Round-robin (driver, client) for the given line index."""
        drivers, clients = self.roster.drivers, self.roster.clients
        driver = drivers[line_index % len(drivers)] if drivers else UNKNOWN_DRIVER
        client = clients[line_index % len(clients)] if clients else UNKNOWN_CLIENT
        return driver, client

    def match_driver(self, segments: List[str], line: str) -> Optional[str]:
        return self._match(self._driver_tokens, segments, line)

    def match_client(self, segments: List[str], line: str) -> Optional[str]:
        return self._match(self._client_tokens, segments, line)

    def _match(self, tokens: Dict[str, str], segments: List[str], line: str) -> Optional[str]:
        if not tokens:
            return None

        # Segments first, then the whole line
        for part in list(segments) + [line]:
            lowered = part.lower()
            for token, full_name in tokens.items():
                if token in lowered:
                    return full_name

        if self.fuzzy_threshold is None:
            return None
        return self._fuzzy_match(tokens, segments)

    def _fuzzy_match(self, tokens: Dict[str, str], segments: List[str]) -> Optional[str]:
        choices = list(tokens)
        best_match = None
        best_score = 0

        for segment in segments:
            match_result = process.extractOne(segment.lower(), choices, scorer=fuzz.partial_ratio)
            if match_result and match_result[1] >= self.fuzzy_threshold and match_result[1] > best_score:
                best_match = tokens[match_result[0]]
                best_score = match_result[1]
                logger.debug(f"Fuzzy matched '{segment}' to '{best_match}' (score: {best_score})")

        return best_match
