import dataclasses
from typing import Dict, List, Optional

from ledger_models import AccountSnapshot, ClientAccount, DisputeStatus, RetainedTransaction


class DuplicateTransactionError(KeyError):
    """Raised when a transaction id is retained a second time."""


class LedgerState:
    """
    In-memory ledger: client accounts plus the deposits and withdrawals
    retained for later dispute lookups.

    Single owner. Only the transition functions mutate it.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._retained: Dict[int, RetainedTransaction] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """
        Get existing account or a zeroed one.
        A new account is not registered until it is passed to store_account.
        """
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
        return account

    def store_account(self, account: ClientAccount) -> None:
        self._accounts[account.client_id] = account

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._retained

    def lookup_retained(self, transaction_id: int) -> Optional[RetainedTransaction]:
        """Retrieve retained deposit/withdrawal by ID."""
        return self._retained.get(transaction_id)

    def record_retained(self, record: RetainedTransaction) -> None:
        if record.transaction_id in self._retained:
            raise DuplicateTransactionError(record.transaction_id)
        self._retained[record.transaction_id] = record

    def update_retained_status(self, transaction_id: int, status: DisputeStatus) -> RetainedTransaction:
        """Change the dispute status of a retained record. Client and amount stay fixed."""
        record = dataclasses.replace(self._retained[transaction_id], status=status)
        self._retained[transaction_id] = record
        return record

    def snapshot(self) -> List[AccountSnapshot]:
        """Return one snapshot per known client, ordered by client id."""
        return [
            AccountSnapshot.from_account(self._accounts[client_id])
            for client_id in sorted(self._accounts)
        ]
