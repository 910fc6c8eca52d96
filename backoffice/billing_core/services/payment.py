import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, NamedTuple

from django.db.models import Count, Sum

# Import models
from ..exceptions import ExceedsBalance, NotFoundOrForbidden
from ..models import Transaction, TransactionPayment
from . import ledger
from .atomic import atomic_block, parse_amount, parse_date
from .audit_helper import log_action
from .status import derive_status, status_after_payment_change

logger = logging.getLogger(__name__)


class PaymentResult(NamedTuple):
    payment: TransactionPayment
    transaction_status: str
    total_paid: Decimal
    remaining_amount: Decimal


class PaymentOverview(NamedTuple):
    transaction: Transaction
    payments: List[TransactionPayment]
    total_paid: Decimal
    remaining_amount: Decimal


# ----------------------------
# Helpers
# ----------------------------
def _lock_transaction(account, **lookup):
    """
    Lock the transaction row until the surrounding atomic block ends,
    so concurrent payments against it are serialized.
    """
    try:
        return Transaction.objects.select_for_update().get(account=account, **lookup)
    except Transaction.DoesNotExist:
        raise NotFoundOrForbidden("Transaction")


def _paid_total(txn, exclude_payment=None):
    payments = TransactionPayment.objects.filter(transaction=txn)
    if exclude_payment is not None:
        payments = payments.exclude(pk=exclude_payment.pk)
    return payments.aggregate(total=Sum("amount"))["total"] or Decimal("0.00")


def _lock_payment(payment_id, account):
    """Return (transaction, payment), both locked, scoped to the account."""
    try:
        payment_id = int(payment_id)
    except (TypeError, ValueError):
        raise NotFoundOrForbidden("Payment")
    txn_pk = (
        TransactionPayment.objects.filter(
            pk=payment_id,
            account=account,
            transaction__account=account,
        )
        .values_list("transaction_id", flat=True)
        .first()
    )
    if txn_pk is None:
        raise NotFoundOrForbidden("Payment")
    # transaction first, then payment: same lock order as record_payment
    txn = _lock_transaction(account, pk=txn_pk)
    try:
        payment = TransactionPayment.objects.select_for_update().get(
            pk=payment_id, transaction=txn
        )
    except TransactionPayment.DoesNotExist:
        raise NotFoundOrForbidden("Payment")
    return txn, payment


def _persist_status(txn, new_status):
    if new_status != txn.status:
        txn.status = new_status
        txn.save(update_fields=["status", "updated_at"])


# ----------------------------
# Payment-related workflows
# ----------------------------
def record_payment(
    transaction_id,
    account,
    amount,
    payment_date=None,
    payment_method=None,
    reference_number=None,
    notes=None,
    user=None,
) -> PaymentResult:
    """
    Apply a payment to a transaction.

    The whole read-check-write sequence runs under a row lock on the
    transaction: payment row, ledger mirror, status and audit row are
    committed together or not at all.
    """
    amount = parse_amount(amount)
    payment_date = parse_date(payment_date, "payment date")
    if not transaction_id:
        raise NotFoundOrForbidden("Transaction")

    with atomic_block("record payment"):
        txn = _lock_transaction(account, transaction_id=transaction_id)

        total_paid = _paid_total(txn)
        remaining = txn.total_amount - total_paid

        # no partial acceptance: caller resubmits a smaller amount
        if amount > remaining:
            logger.warning(
                "Rejected payment of %s on %s: remaining balance %s",
                amount, txn.transaction_id, remaining,
            )
            raise ExceedsBalance(remaining)

        payment = TransactionPayment.objects.create(
            transaction=txn,
            account=account,
            amount=amount,
            payment_date=payment_date,
            payment_method=payment_method or None,
            reference_number=reference_number or None,
            notes=notes or None,
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )

        ledger.mirror_transaction_payment(payment, txn, user=payment.created_by)

        new_total_paid = total_paid + amount
        _persist_status(txn, derive_status(txn.total_amount, new_total_paid, txn.status))

        log_action(
            action="record_payment",
            instance=payment,
            user=user,
            changes={
                "transaction_id": txn.transaction_id,
                "amount": str(amount),
                "status": txn.status,
            },
        )

    logger.info(
        "Recorded payment %s of %s on %s (status %s)",
        payment.pk, amount, txn.transaction_id, txn.status,
    )
    return PaymentResult(
        payment=payment,
        transaction_status=txn.status,
        total_paid=new_total_paid,
        remaining_amount=txn.total_amount - new_total_paid,
    )


def update_payment(
    payment_id,
    account,
    amount,
    payment_date=None,
    payment_method=None,
    reference_number=None,
    notes=None,
    user=None,
) -> PaymentResult:
    """Edit a payment and its ledger mirror in one block."""
    amount = parse_amount(amount)
    payment_date = parse_date(payment_date, "payment date")

    with atomic_block("update payment"):
        txn, payment = _lock_payment(payment_id, account)

        other_payments = _paid_total(txn, exclude_payment=payment)
        if amount + other_payments > txn.total_amount:
            logger.warning(
                "Rejected update of payment %s to %s: exceeds total of %s",
                payment.pk, amount, txn.transaction_id,
            )
            raise ExceedsBalance(txn.total_amount - other_payments)

        old_amount = payment.amount
        payment.amount = amount
        payment.payment_date = payment_date
        payment.payment_method = payment_method or None
        payment.reference_number = reference_number or None
        payment.notes = notes or None
        payment.save()

        ledger.update_mirror(
            account, ledger.TRANSACTION_PAYMENT, payment,
            amount=amount, entry_date=payment_date,
        )

        new_total_paid = other_payments + amount
        _persist_status(
            txn, status_after_payment_change(txn.total_amount, new_total_paid, txn.status)
        )

        log_action(
            action="update_payment",
            instance=payment,
            user=user,
            changes={"old_amount": str(old_amount), "amount": str(amount)},
        )

    logger.info("Updated payment %s on %s", payment.pk, txn.transaction_id)
    return PaymentResult(
        payment=payment,
        transaction_status=txn.status,
        total_paid=new_total_paid,
        remaining_amount=txn.total_amount - new_total_paid,
    )


def delete_payment(payment_id, account, user=None):
    """Remove a payment together with its ledger mirror."""
    with atomic_block("delete payment"):
        txn, payment = _lock_payment(payment_id, account)

        log_action(
            action="delete_payment",
            instance=payment,
            user=user,
            changes={"transaction_id": txn.transaction_id, "amount": str(payment.amount)},
        )

        ledger.delete_mirror(account, ledger.TRANSACTION_PAYMENT, payment)
        payment.delete()

        _persist_status(
            txn, status_after_payment_change(txn.total_amount, _paid_total(txn), txn.status)
        )

    logger.info("Deleted payment %s on %s", payment_id, txn.transaction_id)
    return txn


# ----------------------------
# Reads
# ----------------------------
def _get_transaction(transaction_id, account):
    if not transaction_id:
        raise NotFoundOrForbidden("Transaction")
    try:
        return Transaction.objects.for_account(account).get(transaction_id=transaction_id)
    except Transaction.DoesNotExist:
        raise NotFoundOrForbidden("Transaction")


def get_payments(transaction_id, account) -> PaymentOverview:
    txn = _get_transaction(transaction_id, account)
    payments = list(
        TransactionPayment.objects.filter(transaction=txn)
        .order_by("-payment_date", "-created_at", "-pk")
    )
    total_paid = sum((p.amount for p in payments), Decimal("0.00"))
    return PaymentOverview(
        transaction=txn,
        payments=payments,
        total_paid=total_paid,
        remaining_amount=txn.total_amount - total_paid,
    )


def get_payment_summary(transaction_id, account):
    txn = _get_transaction(transaction_id, account)
    agg = TransactionPayment.objects.filter(transaction=txn).aggregate(
        total=Sum("amount"), count=Count("id")
    )
    total_paid = agg["total"] or Decimal("0.00")
    if txn.total_amount > 0:
        percentage = int((total_paid / txn.total_amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        percentage = 0
    return {
        "transaction_id": txn.transaction_id,
        "transaction_amount": txn.total_amount,
        "total_paid": total_paid,
        "remaining_amount": txn.total_amount - total_paid,
        "payment_count": agg["count"],
        "status": txn.status,
        "payment_percentage": percentage,
    }
