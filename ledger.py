"""
Deliveries ledger boundary.

The ledger is the part of the application that stores confirmed deliveries.
It lives outside this package; all the review session needs is somewhere to
hand a confirmed batch to, in one call.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger

from schemas.logbook_schema import DeliveryBatch, Roster


class DeliveryLedger(ABC):
    """Abstract base for anything that can accept a batch of confirmed deliveries."""

    @abstractmethod
    def add_deliveries(self, batch: DeliveryBatch) -> None:
        """
        Accept a confirmed batch as a single unit.

        Implementations own persistence and record ids. Raising here tells
        the review session the hand-off did not happen.
        """
        pass

    def roster(self) -> Optional[Roster]:
        """The ledger's drivers and clients, or None to use the configured roster."""
        return None


class InMemoryLedger(DeliveryLedger):
    """Keeps batches in a list. Useful for tests and for embedding callers."""

    def __init__(self, roster: Optional[Roster] = None):
        self.batches: List[DeliveryBatch] = []
        self._roster = roster

    def add_deliveries(self, batch: DeliveryBatch) -> None:
        self.batches.append(batch)
        logger.info(f"Ledger received {len(batch)} deliveries from {batch.source_file or 'upload'}")

    def roster(self) -> Optional[Roster]:
        """The drivers and clients this ledger knows about."""
        return self._roster

    @property
    def records(self):
        return [record for batch in self.batches for record in batch.records]
