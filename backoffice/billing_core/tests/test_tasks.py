from decimal import Decimal

from django.conf import settings
from django.test import SimpleTestCase

from backoffice.celery import celery_app

from ..models import LedgerEntry
from ..services.payment import record_payment
from ..services.staff_payment import record_staff_payment
from ..tasks import audit_ledger_mirrors
from .base import BillingTestCase


class LedgerAuditTaskTests(BillingTestCase):

    def setUp(self):
        super().setUp()
        txn = self.make_transaction("1000.00")
        self.payment = record_payment(txn.transaction_id, self.account, "400.00").payment
        self.staff_payment = record_staff_payment(self.account, self.staff.pk, "100.00")

    def test_consistent_ledger_reports_nothing(self):
        self.assertEqual(audit_ledger_mirrors(self.account.pk), [])

    def test_reports_problems_without_repairing(self):
        LedgerEntry.objects.filter(reference_id=f"TXN-PAY-{self.payment.pk}").update(amount=Decimal("1.00"))
        LedgerEntry.objects.filter(reference_id=f"STAFF-PAY-{self.staff_payment.pk}").delete()
        LedgerEntry.objects.create(
            account=self.account, entry_date=self.payment.payment_date, entry_type="income",
            amount=Decimal("5.00"), reference_id="TXN-PAY-999999",
            reference_type="transaction_payment",
        )

        problems = audit_ledger_mirrors(self.account.pk)

        self.assertEqual(
            sorted((p["problem"], p["reference_id"]) for p in problems),
            [
                ("amount_mismatch", f"TXN-PAY-{self.payment.pk}"),
                ("missing_mirror", f"STAFF-PAY-{self.staff_payment.pk}"),
                ("orphan_mirror", "TXN-PAY-999999"),
            ],
        )
        # read-only: the tampered row is untouched
        self.assertEqual(
            LedgerEntry.objects.get(reference_id=f"TXN-PAY-{self.payment.pk}").amount,
            Decimal("1.00"),
        )

    def test_other_accounts_are_ignored(self):
        other, _ = self.make_other_account()
        self.assertEqual(audit_ledger_mirrors(other.pk), [])


class CeleryConfigTests(SimpleTestCase):

    def test_app_reads_celery_namespaced_settings(self):
        self.assertEqual(celery_app.conf.broker_url, settings.CELERY_BROKER_URL)
        self.assertEqual(celery_app.conf.task_always_eager, settings.CELERY_TASK_ALWAYS_EAGER)

    def test_audit_task_is_registered(self):
        self.assertIn("billing_core.tasks.audit_ledger_mirrors", celery_app.tasks)
