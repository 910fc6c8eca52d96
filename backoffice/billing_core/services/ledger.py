"""
Ledger mirroring.

Every financial event owns exactly one LedgerEntry, located through the
deterministic key returned by reference_key(). All helpers here write
through the caller's atomic block; none of them opens its own.
"""
import logging

from django.utils import timezone

from ..models import LedgerEntry

logger = logging.getLogger(__name__)

CLIENT_TRANSACTION = "client_transaction"
TRANSACTION_PAYMENT = "transaction_payment"
STAFF_PAYMENT = "staff_payment"

_KEY_PREFIXES = {
    TRANSACTION_PAYMENT: "TXN-PAY-",
    STAFF_PAYMENT: "STAFF-PAY-",
}


def reference_key(reference_type, source):
    """
    Build the reference_id linking a ledger row to its source event.

    `source` is a model instance or a raw identifier:
      transaction_payment -> "TXN-PAY-<payment pk>"
      staff_payment       -> "STAFF-PAY-<staff payment pk>"
      client_transaction  -> the transaction's external id
    """
    if reference_type == CLIENT_TRANSACTION:
        return str(getattr(source, "transaction_id", source))
    try:
        prefix = _KEY_PREFIXES[reference_type]
    except KeyError:
        raise ValueError(f"Unknown ledger reference type '{reference_type}'")
    return f"{prefix}{getattr(source, 'pk', source)}"


def find_mirror(account, reference_type, source):
    return LedgerEntry.objects.for_account(account).filter(
        reference_type=reference_type,
        reference_id=reference_key(reference_type, source),
    )


# ----------------------------
# Create
# ----------------------------
def mirror_transaction_creation(txn, user=None, description=None):
    """Income row for a transaction that is settled when it is created."""
    return LedgerEntry.objects.create(
        account=txn.account,
        entry_date=txn.transaction_date,
        entry_type="income",
        amount=txn.total_amount,
        description=description or f"Invoice {txn.transaction_id} - {txn.client.business_name}",
        reference_id=reference_key(CLIENT_TRANSACTION, txn),
        reference_type=CLIENT_TRANSACTION,
        client=txn.client,
        created_by=user,
    )


def mirror_transaction_payment(payment, txn, user=None):
    return LedgerEntry.objects.create(
        account=txn.account,
        entry_date=payment.payment_date,
        entry_type="income",
        amount=payment.amount,
        description=f"Payment for Invoice {txn.transaction_id} - {txn.client.business_name}",
        reference_id=reference_key(TRANSACTION_PAYMENT, payment),
        reference_type=TRANSACTION_PAYMENT,
        client_id=txn.client_id,
        created_by=user,
    )


def mirror_staff_payment(payment, user=None, description=None):
    return LedgerEntry.objects.create(
        account=payment.account,
        entry_date=payment.date_paid,
        entry_type="expense",
        amount=payment.amount,
        description=description or f"Payment to {payment.staff.name}",
        reference_id=reference_key(STAFF_PAYMENT, payment),
        reference_type=STAFF_PAYMENT,
        staff_id=payment.staff_id,
        created_by=user,
    )


# ----------------------------
# Update / delete
# ----------------------------
def update_mirror(account, reference_type, source, **fields):
    """Update the mirror's amount/date/etc. Returns the number of rows touched."""
    fields.setdefault("updated_at", timezone.now())
    updated = find_mirror(account, reference_type, source).update(**fields)
    if updated != 1:
        logger.warning(
            "Ledger mirror %s for %s matched %d rows on update",
            reference_type, reference_key(reference_type, source), updated,
        )
    return updated


def delete_mirror(account, reference_type, source, missing_ok=False):
    deleted, _ = find_mirror(account, reference_type, source).delete()
    if deleted > 1 or (deleted == 0 and not missing_ok):
        logger.warning(
            "Ledger mirror %s for %s matched %d rows on delete",
            reference_type, reference_key(reference_type, source), deleted,
        )
    return deleted


def delete_mirrors(account, reference_type, sources):
    """Bulk variant of delete_mirror for a set of source events."""
    keys = [reference_key(reference_type, source) for source in sources]
    if not keys:
        return 0
    deleted, _ = LedgerEntry.objects.for_account(account).filter(
        reference_type=reference_type, reference_id__in=keys
    ).delete()
    if deleted != len(keys):
        logger.warning(
            "Expected %d %s ledger mirrors, deleted %d", len(keys), reference_type, deleted
        )
    return deleted
