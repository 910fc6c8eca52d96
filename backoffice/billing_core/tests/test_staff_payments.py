import datetime
from decimal import Decimal

from ..exceptions import InvalidAmount, NotFoundOrForbidden
from ..models import LedgerEntry, StaffPayment
from ..services.staff_payment import (delete_staff_payment,
                                      get_staff_payments,
                                      get_staff_total_paid,
                                      record_staff_payment,
                                      staff_payment_stats,
                                      update_staff_payment)
from .base import BillingTestCase


class StaffPaymentTests(BillingTestCase):

    def _mirror(self, payment):
        return LedgerEntry.objects.get(reference_id=f"STAFF-PAY-{payment.pk}")

    def test_record_writes_expense_mirror(self):
        payment = record_staff_payment(
            self.account, self.staff.pk, "1500.00",
            date_paid="2026-03-31", notes="March", user=self.user,
        )

        mirror = self._mirror(payment)
        self.assertEqual(mirror.entry_type, "expense")
        self.assertEqual(mirror.reference_type, "staff_payment")
        self.assertEqual(mirror.amount, Decimal("1500.00"))
        self.assertEqual(mirror.staff, self.staff)
        self.assertEqual(mirror.description, "Payment to Bob")

    def test_update_changes_mirror(self):
        payment = record_staff_payment(self.account, self.staff.pk, "100.00", date_paid="2026-03-01")
        update_staff_payment(payment.pk, self.account, "120.00", date_paid="2026-03-02")

        mirror = self._mirror(payment)
        self.assertEqual(mirror.amount, Decimal("120.00"))
        self.assertEqual(mirror.entry_date, datetime.date(2026, 3, 2))

    def test_delete_removes_mirror(self):
        payment = record_staff_payment(self.account, self.staff.pk, "100.00")
        delete_staff_payment(payment.pk, self.account)

        self.assertFalse(StaffPayment.objects.exists())
        self.assertFalse(LedgerEntry.objects.exists())

    def test_invalid_amount(self):
        with self.assertRaises(InvalidAmount):
            record_staff_payment(self.account, self.staff.pk, "-1")
        self.assertFalse(LedgerEntry.objects.exists())

    def test_other_account_is_not_found(self):
        other, _ = self.make_other_account()
        payment = record_staff_payment(self.account, self.staff.pk, "100.00")

        with self.assertRaises(NotFoundOrForbidden):
            record_staff_payment(other, self.staff.pk, "1.00")
        with self.assertRaises(NotFoundOrForbidden):
            update_staff_payment(payment.pk, other, "1.00")
        with self.assertRaises(NotFoundOrForbidden):
            delete_staff_payment(payment.pk, other)

    def test_reads(self):
        record_staff_payment(self.account, self.staff.pk, "100.00", date_paid="2026-01-15")
        record_staff_payment(self.account, self.staff.pk, "200.00", date_paid="2026-03-15")
        record_staff_payment(self.account, self.staff.pk, "50.00", date_paid="2026-03-20")

        payments = get_staff_payments(self.account, self.staff.pk)
        self.assertEqual([p.amount for p in payments],
                         [Decimal("50.00"), Decimal("200.00"), Decimal("100.00")])
        self.assertEqual(get_staff_total_paid(self.account, self.staff.pk), Decimal("350.00"))

        stats = staff_payment_stats(self.account, self.staff.pk)
        self.assertEqual(stats, [
            {"month": "Mar 2026", "total": Decimal("250.00")},
            {"month": "Jan 2026", "total": Decimal("100.00")},
        ])

    def test_deleting_staff_removes_its_mirrors(self):
        record_staff_payment(self.account, self.staff.pk, "100.00")
        record_staff_payment(self.account, self.staff.pk, "200.00")

        self.staff.delete()

        self.assertFalse(StaffPayment.objects.exists())
        self.assertFalse(LedgerEntry.objects.filter(reference_type="staff_payment").exists())

    def test_mirror_cleanup_receiver_is_documented(self):
        from .. import signals

        self.assertEqual(
            signals.__doc__,
            "Remove a staff member's expense mirrors together with the staff row.",
        )
