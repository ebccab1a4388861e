"""
Parsers package for logbook OCR text processing.

This package contains classes that take raw OCR text from a logbook photo
and turn it into candidate delivery entries for review.

As a Python beginner, think of parsers as "translators" that:
- Take messy OCR text as input
- Use patterns and rules to find dates, times, names and amounts
- Score how much each extracted row can be trusted
- Return CandidateEntry objects that a person can check and correct
"""

from .freetext_parser import FreeTextLogbookParser
from .logbook_parser import LogbookParser
from .structural_parser import StructuralLogbookParser

# This allows easy importing like: from parsers import LogbookParser
__all__ = ["LogbookParser", "StructuralLogbookParser", "FreeTextLogbookParser"]
