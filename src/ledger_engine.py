import logging
from typing import Dict, Iterable, List

from csv_codec import open_transactions
from ledger_state import LedgerState
from ledger_models import AccountSnapshot, RejectReason, Transaction
from transition import process_transaction

logger = logging.getLogger(__name__)


class ProcessingStats:
    """Counters for the end-of-run summary."""

    def __init__(self):
        self.applied = 0
        self.rejected = 0
        self.rejected_by_reason: Dict[RejectReason, int] = {}

    def record_applied(self) -> None:
        self.applied += 1

    def record_rejected(self, reason: RejectReason) -> None:
        self.rejected += 1
        self.rejected_by_reason[reason] = self.rejected_by_reason.get(reason, 0) + 1

    def __str__(self) -> str:
        return f"Applied: {self.applied}, Rejected: {self.rejected}"


class LedgerEngine:
    """
    Folds a transaction stream through the transition function, in input
    order, on a single thread.
    """

    def __init__(self):
        self._state = LedgerState()
        self._stats = ProcessingStats()

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_transactions(self, transactions: Iterable[Transaction]) -> LedgerState:
        for transaction in transactions:
            result = process_transaction(self._state, transaction)
            self._state = result.state

            if result.applied:
                self._stats.record_applied()
            else:
                self._stats.record_rejected(result.reason)

        return self._state

    def process_file(self, filepath: str) -> LedgerState:
        """Process CSV file and return the final ledger state."""
        logger.info(f"Processing transactions from {filepath}")
        state = self.process_transactions(open_transactions(filepath))
        logger.info(f"Processing complete. {self._stats}")

        for reason, count in sorted(self._stats.rejected_by_reason.items(), key=lambda item: item[0].value):
            logger.debug(f"  {reason.value}: {count}")

        return state

    def snapshot(self) -> List[AccountSnapshot]:
        return self._state.snapshot()
