from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from ..models import (Account, AccountMembership, QuickStaffPaymentTemplate,
                      QuickTransactionTemplate)
from ..services.templates import execute_transaction_template


class SeedDemoCommandTests(TestCase):

    def test_seeds_a_usable_account(self):
        out = StringIO()
        call_command("seed_demo", account="Demo Ltd", stdout=out)

        account = Account.objects.get(slug="demo-ltd")
        self.assertIn("seeded", out.getvalue())
        self.assertEqual(AccountMembership.objects.get(account=account).role, "admin")
        self.assertTrue(QuickStaffPaymentTemplate.objects.filter(account=account).exists())

        # the seeded template runs through the normal creation path
        template = QuickTransactionTemplate.objects.get(account=account)
        txn = execute_transaction_template(template.pk, account)
        self.assertEqual(str(txn.total_amount), "275.00")

    def test_refuses_to_seed_twice(self):
        call_command("seed_demo", stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command("seed_demo", stdout=StringIO())
