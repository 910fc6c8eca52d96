from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils.text import slugify

from billing_core.models import (Account, AccountMembership, Client, Product,
                                 QuickStaffPaymentTemplate,
                                 QuickTransactionTemplate, Staff)

User = get_user_model()


class Command(BaseCommand):
    help = "Create a demo billing account with clients, products, staff and quick templates."

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--account",
            type=str,
            default="Demo Ltd",
            help="Name of the demo account (default: Demo Ltd)",
        )
        parser.add_argument("--username", default="demo", help="Username for the demo user.")
        parser.add_argument("--password", default="demo123", help="Password for the demo user.")

    @transaction.atomic
    def handle(self, *args, **options):
        name = options["account"]
        slug = slugify(name) or "account"
        if Account.objects.filter(slug=slug).exists():
            raise CommandError(f"Account '{slug}' already exists")

        self.stdout.write(self.style.NOTICE(f"Seeding demo data for {name}..."))

        user, created = User.objects.get_or_create(username=options["username"])
        if created:
            user.set_password(options["password"])
            user.save()

        account = Account.objects.create(name=name, slug=slug, owner=user)
        AccountMembership.objects.create(user=user, account=account, role="admin")

        acme = Client.objects.create(
            account=account, business_name="Acme Corp",
            contact_person="Jane Doe", email="jane@acme.example",
        )
        Client.objects.create(
            account=account, business_name="Globex",
            contact_person="Hank Scorpio", email="hank@globex.example",
        )

        consulting = Product.objects.create(
            account=account, name="Consulting hour", category="Services",
            price=Decimal("250.00"), tax_rate=Decimal("10.00"),
        )
        Product.objects.create(
            account=account, name="Support plan", category="Subscriptions",
            price=Decimal("99.00"), tax_rate=Decimal("0.00"),
        )

        bob = Staff.objects.create(account=account, name="Bob Smith", role="Engineer")

        QuickTransactionTemplate.objects.create(
            account=account, name="Acme consulting", client=acme, product=consulting,
            quantity=Decimal("1"), unit_price=consulting.price, tax_rate=consulting.tax_rate,
        )
        QuickStaffPaymentTemplate.objects.create(
            account=account, name="Bob monthly salary", staff=bob, amount=Decimal("3000.00"),
        )

        self.stdout.write(self.style.SUCCESS(
            f"Demo account '{account.slug}' seeded (login: {user.username})."
        ))
