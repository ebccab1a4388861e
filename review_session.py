"""
Review Session - Human check of the extracted entries before they are saved.

OCR on handwriting is never perfect, so nothing goes to the deliveries
ledger until a person has looked at it. The review session holds the
candidate entries from one logbook photo and lets the reviewer:
- edit any single field of an entry
- delete an entry (there is no undo)
- confirm everything that is left, which sends one batch to the ledger

For Python beginners:
- There is only ever one active batch; starting a new one throws away the
  previous unconfirmed entries
- Edits are not validated - the reviewer may type anything. Dates are only
  interpreted at confirmation time, and an unreadable date falls back to
  today's date with a clear marker in the notes
"""

import re
from datetime import date
from typing import Callable, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ledger import DeliveryLedger
from schemas.logbook_schema import CandidateEntry, DeliveryBatch, DeliveryRecord, NameSource

EDITABLE_FIELDS = {"date", "time", "driver_name", "client_name", "amount"}

# Field names as the review form sends them
FIELD_ALIASES = {"driverName": "driver_name", "clientName": "client_name"}

DATE_SEPARATORS = re.compile(r'[/\-.]')


class CandidateNotFound(KeyError):
    """No candidate with the given id in the current session."""


class ConfirmationError(RuntimeError):
    """The batch could not be turned into delivery records; nothing was sent."""


class ReviewSession:
    """
    Holds one batch of candidate entries until it is confirmed or replaced.

    confirm_all() refuses an empty session with ConfirmationError rather
    than handing an empty batch to the ledger.
    """

    def __init__(self, ledger: DeliveryLedger, today: Callable[[], date] = date.today):
        self.ledger = ledger
        self.today = today
        self.source_file: Optional[str] = None
        self._candidates: List[CandidateEntry] = []

    # ------------------------------------------------------------------
    # Batch lifecycle
    # ------------------------------------------------------------------

    def start(self, candidates: List[CandidateEntry], source_file: Optional[str] = None) -> None:
        """
        Begin reviewing a new batch, discarding any unconfirmed one.

        Args:
            candidates: Entries produced by one parse pass
            source_file: Name of the logbook photo they came from

        Raises:
            ValueError: if two candidates share an id
        """

        ids = [candidate.id for candidate in candidates]
        if len(ids) != len(set(ids)):
            raise ValueError("Candidate ids must be unique within a review session")

        if self._candidates:
            logger.warning(
                f"Discarding {len(self._candidates)} unconfirmed entries from {self.source_file or 'previous upload'}"
            )

        self._candidates = list(candidates)
        self.source_file = source_file
        logger.info(f"Review session started with {len(candidates)} entries")

    def reset(self) -> None:
        self._candidates = []
        self.source_file = None

    @property
    def candidates(self) -> List[CandidateEntry]:
        return list(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def get(self, candidate_id: str) -> CandidateEntry:
        for candidate in self._candidates:
            if candidate.id == candidate_id:
                return candidate
        raise CandidateNotFound(candidate_id)

    # ------------------------------------------------------------------
    # Reviewer actions
    # ------------------------------------------------------------------

    def edit(self, candidate_id: str, field: str, value: Union[str, float, None]) -> CandidateEntry:
        """
        Overwrite exactly one field of one entry. No validation is done here.

        Raises:
            CandidateNotFound: unknown id
            ValueError: field is not editable (id, confidence, ...)
        """

        field = FIELD_ALIASES.get(field, field)
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' cannot be edited. Editable: {', '.join(sorted(EDITABLE_FIELDS))}")

        candidate = self.get(candidate_id)
        setattr(candidate, field, value)
        if field in ("driver_name", "client_name"):
            candidate.name_source = NameSource.EDITED

        logger.debug(f"Edited {field} of {candidate_id}")
        return candidate

    def delete(self, candidate_id: str) -> None:
        candidate = self.get(candidate_id)
        self._candidates.remove(candidate)
        logger.debug(f"Deleted {candidate_id}")

    def confirm_all(self) -> DeliveryBatch:
        """
        Turn every remaining entry into a DeliveryRecord and send them to the
        ledger as one batch.

        Returns:
            The batch that was handed to the ledger

        Raises:
            ConfirmationError: empty session or an amount that is not a number.
                Nothing is sent and the session is left as it was.
            Any exception from the ledger propagates; the session is kept so
            the reviewer can try again.
        """

        if not self._candidates:
            raise ConfirmationError("There are no entries to confirm")

        batch = DeliveryBatch(
            records=[self._to_record(candidate) for candidate in self._candidates],
            source_file=self.source_file,
        )

        self.ledger.add_deliveries(batch)

        defaulted = sum(1 for record in batch.records if record.date_defaulted)
        logger.info(f"Confirmed {len(batch)} entries ({defaulted} with defaulted dates)")
        self.reset()
        return batch

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _to_record(self, candidate: CandidateEntry) -> DeliveryRecord:
        notes = f"OCR extracted ({candidate.confidence}% confidence)"

        iso_date = parse_logbook_date(candidate.date)
        date_defaulted = iso_date is None
        if date_defaulted:
            iso_date = self.today().isoformat()
            notes += f"; date unreadable ('{candidate.date}'), defaulted to {iso_date}"
            logger.warning(f"Entry {candidate.id}: unreadable date '{candidate.date}', using {iso_date}")

        try:
            return DeliveryRecord(
                date=iso_date,
                time=candidate.time,
                driver_name=candidate.driver_name,
                client_name=candidate.client_name,
                amount=self._coerce_amount(candidate),
                notes=notes,
                date_defaulted=date_defaulted,
            )
        except ValidationError as e:
            raise ConfirmationError(f"Entry {candidate.id} is not a valid delivery: {e}") from e

    @staticmethod
    def _coerce_amount(candidate: CandidateEntry) -> Optional[float]:
        amount = candidate.amount
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            return None
        try:
            return float(str(amount).replace(',', '').strip())
        except ValueError as e:
            raise ConfirmationError(f"Entry {candidate.id}: amount '{amount}' is not a number") from e


def parse_logbook_date(value: Optional[str]) -> Optional[str]:
    """
    Convert a D/M/Y-style logbook date into YYYY-MM-DD.

    '/', '-' and '.' are accepted as separators and two-digit years are
    read as 20YY. Returns None when the value is not a real calendar date.

    Examples:
        "12/01/2024" -> "2024-01-12"
        "5-3-24"     -> "2024-03-05"
        "31/02/2024" -> None
    """

    if not value:
        return None

    parts = DATE_SEPARATORS.split(value.strip())
    if len(parts) != 3 or not all(part.strip().isdecimal() for part in parts):
        return None

    day, month, year = (part.strip() for part in parts)
    if len(year) == 2:
        year = f"20{year}"
    elif len(year) != 4:
        return None

    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None
