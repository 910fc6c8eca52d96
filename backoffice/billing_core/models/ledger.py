from django.conf import settings
from django.db import models

from ..managers import TenantManager
from .directory import Client, Staff
from .entitymembership import Account

ENTRY_TYPE_CHOICES = [
    ("income", "Income"),
    ("expense", "Expense"),
]

REFERENCE_TYPE_CHOICES = [
    ("client_transaction", "Client transaction"),  # transaction settled at creation
    ("transaction_payment", "Transaction payment"),
    ("staff_payment", "Staff payment"),
]


# ---------- Ledger ----------
class LedgerEntry(models.Model):
    """
    Append-style income/expense row mirrored from a financial event.

    There is no foreign key to the source event: (reference_type,
    reference_id) is the only link, and it is built by
    services.ledger.reference_key() on every create/update/delete path.
    """
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    entry_date = models.DateField()
    entry_type = models.CharField(max_length=10, choices=ENTRY_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    description = models.TextField(blank=True)

    reference_id = models.CharField(max_length=64)
    reference_type = models.CharField(max_length=32, choices=REFERENCE_TYPE_CHOICES)

    # Optional counterparties, kept for filtering and per-client totals
    client = models.ForeignKey(
        Client, null=True, blank=True, on_delete=models.SET_NULL
    )
    staff = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce account scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "ledger entries"
        indexes = [
            models.Index(fields=["account", "entry_date"], name="ledger_account_date_idx"),
            models.Index(fields=["account", "entry_type"], name="ledger_account_type_idx"),
        ]
        constraints = [
            # one event => exactly one ledger row
            models.UniqueConstraint(
                fields=["account", "reference_type", "reference_id"],
                name="uq_ledger_account_reference",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="ledger_non_negative_amount",
            ),
        ]

    def __str__(self):
        return f"{self.entry_date} {self.entry_type} {self.amount} [{self.reference_id}]"
