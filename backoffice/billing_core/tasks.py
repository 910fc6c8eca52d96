import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def audit_ledger_mirrors(account_id):
    """
    Compare every payment with its ledger mirror for one account.

    Read-only: discrepancies are logged and returned, never repaired.
    Each item is a dict with `problem` in {"missing_mirror",
    "amount_mismatch", "orphan_mirror"} and the reference key involved.
    """
    # import lazily to avoid circular imports at module import time
    from .models import LedgerEntry, StaffPayment, TransactionPayment
    from .services.ledger import (STAFF_PAYMENT, TRANSACTION_PAYMENT,
                                  reference_key)

    sources = {}
    for payment in TransactionPayment.objects.filter(account_id=account_id):
        sources[(TRANSACTION_PAYMENT, reference_key(TRANSACTION_PAYMENT, payment))] = payment.amount
    for payment in StaffPayment.objects.filter(account_id=account_id):
        sources[(STAFF_PAYMENT, reference_key(STAFF_PAYMENT, payment))] = payment.amount

    mirrors = {
        (entry.reference_type, entry.reference_id): entry.amount
        for entry in LedgerEntry.objects.filter(
            account_id=account_id,
            reference_type__in=[TRANSACTION_PAYMENT, STAFF_PAYMENT],
        )
    }

    problems = []
    for key, amount in sources.items():
        if key not in mirrors:
            problems.append({"problem": "missing_mirror", "reference_type": key[0], "reference_id": key[1]})
        elif mirrors[key] != amount:
            problems.append({
                "problem": "amount_mismatch",
                "reference_type": key[0],
                "reference_id": key[1],
                "payment_amount": str(amount),
                "ledger_amount": str(mirrors[key]),
            })
    for key in mirrors.keys() - sources.keys():
        problems.append({"problem": "orphan_mirror", "reference_type": key[0], "reference_id": key[1]})

    for problem in problems:
        logger.warning("Ledger audit for account %s: %s", account_id, problem)
    logger.info(
        "Ledger audit for account %s checked %d payments, found %d problems",
        account_id, len(sources), len(problems),
    )
    return problems
