import logging
from typing import Optional

from ledger_state import LedgerState
from ledger_models import (
    ApplyResult,
    DisputeStatus,
    MAX_AMOUNT,
    RejectReason,
    RetainedTransaction,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


def apply_transaction(state: LedgerState, transaction: Transaction) -> LedgerState:
    """
    Apply one transaction and return the resulting ledger.

    Never raises for a well-formed Transaction. An invalid transaction is
    dropped and the input state comes back untouched.
    """
    return process_transaction(state, transaction).state


def process_transaction(state: LedgerState, transaction: Transaction) -> ApplyResult:
    """
    Same as apply_transaction, but also reports which rule dropped the
    transaction, if any.

    Every guard is checked before the first mutation, so a rejected
    transaction leaves no trace in the ledger.
    """
    match transaction.transaction_type:
        case TransactionType.DEPOSIT:
            reason = _handle_deposit(state, transaction)
        case TransactionType.WITHDRAWAL:
            reason = _handle_withdrawal(state, transaction)
        case TransactionType.DISPUTE:
            reason = _handle_dispute(state, transaction)
        case TransactionType.RESOLVE:
            reason = _handle_resolve(state, transaction)
        case TransactionType.CHARGEBACK:
            reason = _handle_chargeback(state, transaction)

    if reason is not None:
        logger.debug(f"Dropped {transaction!r}: {reason.value}")
    return ApplyResult(state=state, reason=reason)


def _check_funds_movement(state: LedgerState, transaction: Transaction) -> Optional[RejectReason]:
    """Guards shared by deposits and withdrawals."""
    if transaction.amount is None:
        return RejectReason.MISSING_AMOUNT

    if transaction.amount < 0:
        return RejectReason.NEGATIVE_AMOUNT

    if transaction.amount > MAX_AMOUNT:
        return RejectReason.AMOUNT_TOO_LARGE

    if state.has_transaction(transaction.transaction_id):
        return RejectReason.DUPLICATE_TRANSACTION_ID

    return None


def _retain(state: LedgerState, transaction: Transaction) -> None:
    state.record_retained(
        RetainedTransaction(
            transaction_id=transaction.transaction_id,
            client_id=transaction.client_id,
            transaction_type=transaction.transaction_type,
            amount=transaction.amount,
        )
    )


def _handle_deposit(state: LedgerState, transaction: Transaction) -> Optional[RejectReason]:
    reason = _check_funds_movement(state, transaction)
    if reason is not None:
        return reason

    account = state.get_or_create_account(transaction.client_id)
    if account.locked:
        return RejectReason.ACCOUNT_LOCKED

    account.credit(transaction.amount)
    state.store_account(account)
    _retain(state, transaction)
    return None


def _handle_withdrawal(state: LedgerState, transaction: Transaction) -> Optional[RejectReason]:
    reason = _check_funds_movement(state, transaction)
    if reason is not None:
        return reason

    account = state.get_account(transaction.client_id)
    if account is None:
        return RejectReason.UNKNOWN_CLIENT

    if account.locked:
        return RejectReason.ACCOUNT_LOCKED

    if account.available < transaction.amount:
        return RejectReason.INSUFFICIENT_FUNDS

    account.debit(transaction.amount)
    _retain(state, transaction)
    return None


def _check_dispute_target(
    state: LedgerState, transaction: Transaction, expect_disputed: bool
) -> Optional[RejectReason]:
    """Guards shared by dispute, resolve and chargeback."""
    original = state.lookup_retained(transaction.transaction_id)

    if original is None:
        return RejectReason.UNKNOWN_TRANSACTION

    # Withdrawals are retained only to block id reuse; funds already left the account
    if not original.is_disputable:
        return RejectReason.NOT_DISPUTABLE

    if original.client_id != transaction.client_id:
        return RejectReason.CLIENT_MISMATCH

    if original.is_disputed and not expect_disputed:
        return RejectReason.ALREADY_DISPUTED

    if not original.is_disputed and expect_disputed:
        return RejectReason.NOT_DISPUTED

    if state.get_or_create_account(transaction.client_id).locked:
        return RejectReason.ACCOUNT_LOCKED

    return None


def _handle_dispute(state: LedgerState, transaction: Transaction) -> Optional[RejectReason]:
    reason = _check_dispute_target(state, transaction, expect_disputed=False)
    if reason is not None:
        return reason

    original = state.lookup_retained(transaction.transaction_id)
    account = state.get_or_create_account(transaction.client_id)
    account.hold(original.amount)
    state.store_account(account)
    state.update_retained_status(transaction.transaction_id, DisputeStatus.DISPUTED)
    return None


def _handle_resolve(state: LedgerState, transaction: Transaction) -> Optional[RejectReason]:
    reason = _check_dispute_target(state, transaction, expect_disputed=True)
    if reason is not None:
        return reason

    original = state.lookup_retained(transaction.transaction_id)
    account = state.get_or_create_account(transaction.client_id)
    account.release_hold(original.amount)
    state.store_account(account)
    state.update_retained_status(transaction.transaction_id, DisputeStatus.UNDISPUTED)
    return None


def _handle_chargeback(state: LedgerState, transaction: Transaction) -> Optional[RejectReason]:
    reason = _check_dispute_target(state, transaction, expect_disputed=True)
    if reason is not None:
        return reason

    original = state.lookup_retained(transaction.transaction_id)
    account = state.get_or_create_account(transaction.client_id)
    account.charge_back(original.amount)
    state.store_account(account)
    return None
