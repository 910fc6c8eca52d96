from decimal import Decimal

from django.conf import settings


def derive_status(total_amount, total_paid, current_status):
    """
    Map (invoice total, money applied, prior status) to the next status.

    Never moves back to pending/draft once money has been applied:
    a partially paid invoice stays partial even if a payment is removed.
    """
    total_amount = Decimal(total_amount)
    total_paid = Decimal(total_paid)

    if total_paid >= total_amount:
        return "paid"
    if total_paid > 0 and current_status == "pending":
        return "partial"
    return current_status


def recompute_status(total_amount, total_paid, current_status):
    """Correcting variant: status always follows the true paid sum."""
    total_amount = Decimal(total_amount)
    total_paid = Decimal(total_paid)

    if total_paid >= total_amount:
        return "paid"
    if total_paid > 0:
        # draft/overdue keep their label until fully settled
        return "partial" if current_status in ("pending", "partial", "paid") else current_status
    if current_status in ("partial", "paid"):
        return "pending"
    return current_status


def status_after_payment_change(total_amount, total_paid, current_status):
    """
    Status to persist after a payment is edited or deleted.
    Unchanged unless BILLING_RECOMPUTE_STATUS_ON_PAYMENT_CHANGE is enabled.
    """
    if getattr(settings, "BILLING_RECOMPUTE_STATUS_ON_PAYMENT_CHANGE", False):
        return recompute_status(total_amount, total_paid, current_status)
    return current_status
