import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError

from ..services.payment import record_payment
from ..services.reporting import (client_totals, current_month_summary,
                                  dashboard_stats, ledger_entries,
                                  monthly_summary, yearly_summary)
from ..services.staff_payment import record_staff_payment
from .base import BillingTestCase


class ReportingTests(BillingTestCase):

    def setUp(self):
        super().setUp()
        # January: invoice settled at creation (income 275)
        self.make_transaction("275.00", status="paid", transaction_date=datetime.date(2026, 1, 10))
        # March: partial payment (income 400) and a staff payment (expense 100)
        invoice = self.make_transaction("1000.00")
        record_payment(invoice.transaction_id, self.account, "400.00",
                       payment_date=datetime.date(2026, 3, 5))
        record_staff_payment(self.account, self.staff.pk, "100.00", date_paid="2026-03-20")
        # still pending
        self.make_transaction("60.00")

    def test_monthly_summary_has_twelve_buckets(self):
        summary = monthly_summary(self.account, 2026)

        self.assertEqual([row["month"] for row in summary], list(range(1, 13)))
        self.assertEqual(summary[0], {"month": 1, "income": Decimal("275.00"),
                                      "expense": Decimal("0.00"), "profit": Decimal("275.00")})
        self.assertEqual(summary[2]["income"], Decimal("400.00"))
        self.assertEqual(summary[2]["expense"], Decimal("100.00"))
        self.assertEqual(summary[2]["profit"], Decimal("300.00"))
        self.assertEqual(summary[5]["profit"], Decimal("0.00"))

    def test_yearly_summary(self):
        summary = yearly_summary(self.account, today=datetime.date(2026, 6, 1))

        self.assertEqual([row["year"] for row in summary], [2022, 2023, 2024, 2025, 2026])
        self.assertEqual(summary[-1]["income"], Decimal("675.00"))
        self.assertEqual(summary[-1]["expense"], Decimal("100.00"))
        self.assertEqual(summary[-1]["profit"], Decimal("575.00"))
        self.assertEqual(summary[0]["income"], Decimal("0.00"))

    def test_current_month_summary(self):
        result = current_month_summary(self.account, today=datetime.date(2026, 3, 31))

        self.assertEqual(result["summary"], {
            "income": Decimal("400.00"), "expense": Decimal("100.00"), "profit": Decimal("300.00"),
        })
        # newest first
        self.assertEqual([e.entry_type for e in result["entries"]], ["expense", "income"])

    def test_ledger_entry_filters(self):
        self.assertEqual(ledger_entries(self.account).count(), 3)
        self.assertEqual(ledger_entries(self.account, year=2026, month=1).count(), 1)
        self.assertEqual(ledger_entries(self.account, staff_id=self.staff.pk).count(), 1)
        self.assertEqual(ledger_entries(self.account, client_id=self.client_rec.pk).count(), 2)
        self.assertEqual(ledger_entries(self.account, year=2025).count(), 0)
        with self.assertRaises(ValidationError):
            ledger_entries(self.account, month="march")
        for bad in ({"year": 99999}, {"year": 0}, {"month": 13}, {"month": 0}):
            with self.assertRaises(ValidationError):
                ledger_entries(self.account, **bad)
        with self.assertRaises(ValidationError):
            monthly_summary(self.account, 10000)

    def test_reports_are_scoped_to_account(self):
        other, _ = self.make_other_account()
        self.assertEqual(ledger_entries(other).count(), 0)
        self.assertEqual(client_totals(other), [])

    def test_client_totals(self):
        self.assertEqual(client_totals(self.account), [{
            "client_id": self.client_rec.pk,
            "client_name": "Acme",
            "total": Decimal("675.00"),
            "entries": 2,
        }])

    def test_dashboard_stats(self):
        self.assertEqual(dashboard_stats(self.account), {
            "total_revenue": Decimal("275.00"),
            "pending_invoice_count": 1,
            "active_client_count": 1,
            "active_staff_count": 1,
        })
