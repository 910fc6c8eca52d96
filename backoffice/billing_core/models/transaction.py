from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager, TransactionItemProductManager
from .directory import Client, Product
from .entitymembership import Account

CENTS = Decimal("0.01")

TXN_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("pending", "Pending"),
    ("partial", "Partial"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
]
TXN_STATUSES = {value for value, _ in TXN_STATUS_CHOICES}


def to_cents(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class Transaction(models.Model):  # Represents a client invoice / sale

    # External identifier shown to users (e.g. "INV-2026-1A2B3C4D")
    transaction_id = models.CharField(max_length=40, unique=True)

    account = models.ForeignKey(Account, on_delete=models.CASCADE)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )

    # prevent deleting a client who has transactions
    client = models.ForeignKey(Client, on_delete=models.PROTECT)

    transaction_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    reference_number = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    terms = models.TextField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, null=True, blank=True)

    status = models.CharField(
        max_length=10, choices=TXN_STATUS_CHOICES, default="pending"
    )
    """ Workflow:
        draft   = not yet issued.
        pending = issued, nothing paid.
        partial = some money applied.
        paid    = fully settled.
        overdue = past due date. """

    # Totals are always derived from the items (see compute_totals)
    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce account scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["account", "status"], name="txn_account_status_idx"),
            models.Index(fields=["account", "client"], name="txn_account_client_idx"),
        ]

    def __str__(self):
        return self.transaction_id

    @staticmethod
    def compute_totals(items):
        """
        Return (subtotal, tax_amount, total_amount) for an iterable of
        item-like objects exposing quantity, unit_price and tax_rate.
        Tax is charged per line on quantity x unit_price.
        """
        subtotal = Decimal("0.00")
        tax = Decimal("0.00")
        for item in items:
            line_total = to_cents(Decimal(item.quantity) * Decimal(item.unit_price))
            subtotal += line_total
            tax += line_total * Decimal(item.tax_rate or 0) / Decimal("100")
        subtotal = to_cents(subtotal)
        tax = to_cents(tax)
        return subtotal, tax, subtotal + tax

    def clean(self):
        if self.status not in TXN_STATUSES:
            raise ValidationError(f"Invalid status '{self.status}'")
        # Ensure client chosen belongs to the same account
        if self.client_id and self.client.account_id != self.account_id:
            raise ValidationError("Client must belong to the same account.")
        if self.due_date and self.transaction_date and self.due_date < self.transaction_date:
            raise ValidationError("Due date cannot be before the transaction date.")


class TransactionItem(models.Model):  # One line of a transaction

    transaction = models.ForeignKey(
        Transaction, on_delete=models.CASCADE, related_name="items")

    # Optionally linked to a catalogue product
    product = models.ForeignKey(
        Product, null=True, blank=True, on_delete=models.SET_NULL
    )
    description = models.TextField(blank=True)

    # quantity x unit_price = total (tax is applied at transaction level)
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1")
    )
    unit_price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax_rate = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0.00")
    )
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    objects = models.Manager()
    from_product = TransactionItemProductManager()  # autofill price/tax from Product

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0) &
                models.Q(unit_price__gte=0) &
                models.Q(tax_rate__gte=0),
                name="txn_item_valid_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.transaction_id}: {self.description} x{self.quantity}"

    def save(self, *args, **kwargs):
        # compute line total always
        self.total = to_cents(
            (self.quantity or Decimal("0")) * (self.unit_price or Decimal("0"))
        )
        return super().save(*args, **kwargs)


class TransactionPayment(models.Model):  # Money applied against a transaction

    transaction = models.ForeignKey(
        Transaction, on_delete=models.CASCADE, related_name="payments")
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=50, null=True, blank=True)
    reference_number = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["transaction", "payment_date"], name="txn_payment_date_idx")]
        constraints = [
            # Ensure payments are never zero or negative
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="txn_payment_positive_amount",
            ),
        ]

    def __str__(self):
        return f"Payment {self.pk} on {self.transaction_id}: {self.amount}"
