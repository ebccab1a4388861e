"""Duplicate removal for free-text candidates."""

from typing import List

from loguru import logger

from schemas.logbook_schema import CandidateEntry


def deduplicate_by_date_time(candidates: List[CandidateEntry]) -> List[CandidateEntry]:
    """
    Keep only the first candidate for each (date, time) pair.

    Free-text logs often repeat a row (OCR reads a smudged line twice, or the
    same delivery is written in two places). Order is preserved.
    """

    seen = set()
    unique = []
    for candidate in candidates:
        key = (candidate.date, candidate.time)
        if key in seen:
            logger.debug(f"Dropping duplicate of {key} from line {candidate.source_line_index}")
            continue
        seen.add(key)
        unique.append(candidate)

    removed = len(candidates) - len(unique)
    if removed:
        logger.info(f"Removed {removed} duplicate entries")
    return unique
