import logging
from decimal import Decimal

from django.db.models import Sum
from django.db.models.functions import TruncMonth

from ..exceptions import NotFoundOrForbidden
from ..models import Staff, StaffPayment
from . import ledger
from .atomic import atomic_block, parse_amount, parse_date
from .audit_helper import log_action

logger = logging.getLogger(__name__)


def _get_staff(account, staff_id):
    try:
        return Staff.objects.for_account(account).get(pk=int(staff_id))
    except (TypeError, ValueError, Staff.DoesNotExist):
        raise NotFoundOrForbidden("Staff member")


def _lock_staff_payment(account, payment_id):
    try:
        return (
            StaffPayment.objects.select_for_update()
            .get(account=account, pk=int(payment_id))
        )
    except (TypeError, ValueError, StaffPayment.DoesNotExist):
        raise NotFoundOrForbidden("Payment")


# ----------------------------
# Staff payment workflows
# ----------------------------
def record_staff_payment(account, staff_id, amount, date_paid=None, notes="",
                         user=None, ledger_description=None):
    """Pay a staff member; the expense mirror is written in the same block."""
    amount = parse_amount(amount, "Invalid amount")
    date_paid = parse_date(date_paid, "payment date")
    staff = _get_staff(account, staff_id)
    user = user if getattr(user, "is_authenticated", False) else None

    with atomic_block("record staff payment"):
        payment = StaffPayment.objects.create(
            account=account,
            staff=staff,
            amount=amount,
            date_paid=date_paid,
            notes=notes or "",
        )
        ledger.mirror_staff_payment(payment, user=user, description=ledger_description)
        log_action(
            action="record_staff_payment",
            instance=payment,
            user=user,
            changes={"staff_id": staff.pk, "amount": str(amount)},
        )

    logger.info("Recorded staff payment %s of %s to %s", payment.pk, amount, staff.pk)
    return payment


def update_staff_payment(payment_id, account, amount, date_paid=None, notes="", user=None):
    amount = parse_amount(amount, "Invalid amount")
    date_paid = parse_date(date_paid, "payment date")

    with atomic_block("update staff payment"):
        payment = _lock_staff_payment(account, payment_id)
        old_amount = payment.amount

        payment.amount = amount
        payment.date_paid = date_paid
        payment.notes = notes or ""
        payment.save(update_fields=["amount", "date_paid", "notes"])

        ledger.update_mirror(
            account, ledger.STAFF_PAYMENT, payment,
            amount=amount, entry_date=date_paid,
        )
        log_action(
            action="update_staff_payment",
            instance=payment,
            user=user,
            changes={"old_amount": str(old_amount), "amount": str(amount)},
        )

    logger.info("Updated staff payment %s", payment.pk)
    return payment


def delete_staff_payment(payment_id, account, user=None):
    with atomic_block("delete staff payment"):
        payment = _lock_staff_payment(account, payment_id)
        log_action(
            action="delete_staff_payment",
            instance=payment,
            user=user,
            changes={"staff_id": payment.staff_id, "amount": str(payment.amount)},
        )
        ledger.delete_mirror(account, ledger.STAFF_PAYMENT, payment)
        payment.delete()

    logger.info("Deleted staff payment %s", payment_id)


# ----------------------------
# Reads
# ----------------------------
def get_staff_payments(account, staff_id):
    staff = _get_staff(account, staff_id)
    return list(staff.payments.order_by("-date_paid", "-pk"))


def get_staff_total_paid(account, staff_id):
    staff = _get_staff(account, staff_id)
    return staff.payments.aggregate(total=Sum("amount"))["total"] or Decimal("0.00")


def staff_payment_stats(account, staff_id, months=6):
    """Monthly totals for the most recent `months` months with payments."""
    staff = _get_staff(account, staff_id)
    rows = (
        staff.payments.annotate(month=TruncMonth("date_paid"))
        .values("month")
        .annotate(total=Sum("amount"))
        .order_by("-month")[:months]
    )
    return [
        {"month": row["month"].strftime("%b %Y"), "total": row["total"]}
        for row in rows
    ]
