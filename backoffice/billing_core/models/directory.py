from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Account


# ---------- Client ----------
# Receives transactions (invoices)
class Client(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    business_name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce account scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["account", "business_name"], name="client_account_name_idx")]

    def __str__(self):
        return self.business_name


# ---------- Product ----------
class Product(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)

    # Default price and tax rate (percent) copied onto transaction items
    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax_rate = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0.00")
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["account", "name"], name="product_account_name_idx")]

    def __str__(self):
        return self.name

    def clean(self):
        if self.price is not None and self.price < 0:
            raise ValidationError("Price must be >= 0")
        if self.tax_rate is not None and self.tax_rate < 0:
            raise ValidationError("Tax rate must be >= 0")


# ---------- Staff ----------
class Staff(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    role = models.CharField(max_length=100, blank=True)
    email = models.EmailField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        verbose_name_plural = "staff"
        indexes = [models.Index(fields=["account", "name"], name="staff_account_name_idx")]

    def __str__(self):
        return self.name


# Salary / fee paid out to a staff member (mirrored to the ledger as expense)
class StaffPayment(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE)
    staff = models.ForeignKey(
        Staff, on_delete=models.CASCADE, related_name="payments"
    )

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    date_paid = models.DateField()
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="staff_payment_positive_amount",
            ),
        ]

    def __str__(self):
        return f"{self.staff} {self.amount} ({self.date_paid})"
