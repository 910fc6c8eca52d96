import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from ..models import Account, AccountMembership, Client, Product, Staff
from ..services.lifecycle import create_transaction

TODAY = datetime.date(2026, 3, 15)


class BillingTestCase(TestCase):
    """One account with a client, a product and a staff member."""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username="owner", password="pw")
        self.account = Account.objects.create(name="Test Co", slug="test-co", owner=self.user)
        AccountMembership.objects.create(user=self.user, account=self.account, role="admin")

        self.client_rec = Client.objects.create(account=self.account, business_name="Acme")
        self.product = Product.objects.create(
            account=self.account,
            name="Consulting",
            price=Decimal("250.00"),
            tax_rate=Decimal("10.00"),
        )
        self.staff = Staff.objects.create(account=self.account, name="Bob")

    def make_transaction(self, total, status="pending", account=None, client=None,
                         transaction_date=TODAY):
        """A single-line, tax-free transaction for `total`."""
        return create_transaction(
            account or self.account,
            {
                "client_id": (client or self.client_rec).pk,
                "status": status,
                "transaction_date": transaction_date,
                "items": [{"description": "Work", "quantity": "1", "unit_price": total}],
            },
            user=self.user,
        )

    def make_other_account(self):
        other = Account.objects.create(name="Other Co", slug="other-co")
        other_client = Client.objects.create(account=other, business_name="Globex")
        return other, other_client
