"""
Read-only reporting over the ledger.

Figures are recomputed from rows on every call; nothing is cached.
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import Count, Sum
from django.db.models.functions import ExtractMonth, ExtractYear
from django.utils import timezone

from ..models import Client, LedgerEntry, Staff, Transaction

ZERO = Decimal("0.00")


def _int_or_none(value, field, low=None, high=None):
    if value in (None, "", "all"):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}")
    if (low is not None and number < low) or (high is not None and number > high):
        raise ValidationError(f"Invalid {field}")
    return number


def _bucket(key, value, income, expense):
    return {key: value, "income": income, "expense": expense, "profit": income - expense}


def _totals_by(qs, key):
    """{(key value, entry_type): total} for a ledger queryset annotated with `key`."""
    rows = qs.values(key, "entry_type").annotate(total=Sum("amount")).order_by()
    return {(row[key], row["entry_type"]): row["total"] or ZERO for row in rows}


# ----------------------------
# Entries
# ----------------------------
def ledger_entries(account, year=None, month=None, client_id=None, staff_id=None):
    qs = LedgerEntry.objects.for_account(account).select_related("client", "staff")

    year = _int_or_none(year, "year", 1, 9999)
    month = _int_or_none(month, "month", 1, 12)
    client_id = _int_or_none(client_id, "client id")
    staff_id = _int_or_none(staff_id, "staff id")

    if year:
        qs = qs.filter(entry_date__year=year)
    if month:
        qs = qs.filter(entry_date__month=month)
    if client_id:
        qs = qs.filter(client_id=client_id)
    if staff_id:
        qs = qs.filter(staff_id=staff_id)
    return qs.order_by("-entry_date", "-created_at", "-pk")


# ----------------------------
# Summaries
# ----------------------------
def monthly_summary(account, year):
    """Twelve buckets, one per calendar month, zero-filled."""
    year = _int_or_none(year, "year", 1, 9999) or timezone.localdate().year
    qs = (
        LedgerEntry.objects.for_account(account)
        .filter(entry_date__year=year)
        .annotate(month=ExtractMonth("entry_date"))
    )
    totals = _totals_by(qs, "month")
    return [
        _bucket(
            "month", month,
            totals.get((month, "income"), ZERO),
            totals.get((month, "expense"), ZERO),
        )
        for month in range(1, 13)
    ]


def yearly_summary(account, years=5, today=None):
    """The last `years` calendar years, oldest first, ending with the current one."""
    today = today or timezone.localdate()
    start_year = today.year - (years - 1)
    qs = (
        LedgerEntry.objects.for_account(account)
        .filter(entry_date__year__gte=start_year)
        .annotate(year=ExtractYear("entry_date"))
    )
    totals = _totals_by(qs, "year")
    return [
        _bucket(
            "year", year,
            totals.get((year, "income"), ZERO),
            totals.get((year, "expense"), ZERO),
        )
        for year in range(start_year, today.year + 1)
    ]


def current_month_summary(account, today=None):
    """Totals for the running month plus its entries."""
    today = today or timezone.localdate()
    entries = ledger_entries(account, year=today.year, month=today.month)
    totals = {
        row["entry_type"]: row["total"] or ZERO
        for row in entries.values("entry_type").annotate(total=Sum("amount")).order_by()
    }
    income = totals.get("income", ZERO)
    expense = totals.get("expense", ZERO)
    return {
        "summary": {"income": income, "expense": expense, "profit": income - expense},
        "entries": list(entries),
    }


def client_totals(account):
    """Income received per client, largest first."""
    rows = (
        LedgerEntry.objects.for_account(account)
        .filter(entry_type="income", client__isnull=False)
        .values("client_id", "client__business_name")
        .annotate(total=Sum("amount"), entries=Count("id"))
        .order_by("-total", "client__business_name")
    )
    return [
        {
            "client_id": row["client_id"],
            "client_name": row["client__business_name"],
            "total": row["total"] or ZERO,
            "entries": row["entries"],
        }
        for row in rows
    ]


def dashboard_stats(account):
    transactions = Transaction.objects.for_account(account)
    return {
        "total_revenue": transactions.filter(status="paid").aggregate(
            total=Sum("total_amount"))["total"] or ZERO,
        "pending_invoice_count": transactions.filter(status="pending").count(),
        "active_client_count": Client.objects.active(account).count(),
        "active_staff_count": Staff.objects.active(account).count(),
    }
