from django.conf import settings
from django.db import models

from ..managers import TenantManager


# ---------- Billing account (record owner) ----------
class Account(models.Model):

    """The owner of clients, transactions and the ledger"""
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True
    )

    # The user who registered the account
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="owned_accounts",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


# ---------- AccountMembership ----------
class AccountMembership(models.Model):  # Bridge table between User and Account

    ROLE_CHOICES = [
        ("admin", "Admin"),  # full control over the account
        ("staff", "Staff"),  # can record transactions and payments
        ("viewer", "Viewer"),  # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="billing_memberships",
    )

    account = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="memberships"
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default="viewer",  # safe, read-only
    )

    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce account scoping
    objects = TenantManager()

    class Meta:
        # one user can only have one membership per account
        constraints = [
            models.UniqueConstraint(
                fields=["user", "account"], name="uq_user_account_membership"
            ),
        ]

    def __str__(self):
        return f"{self.user} @ {self.account} ({self.role})"

    @property
    def can_write(self):
        return self.is_active and self.role in ("admin", "staff")
