from decimal import Decimal

from django.db import models

from ..managers import TenantManager
from .directory import Client, Product, Staff
from .entitymembership import Account


# ---------- Quick templates ----------
# Saved parameter sets replayed through the normal creation paths.
# Executing a template never mutates it.
class QuickTransactionTemplate(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    product = models.ForeignKey(
        Product, null=True, blank=True, on_delete=models.SET_NULL
    )

    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1")
    )
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    tax_rate = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0.00")
    )
    payment_method = models.CharField(max_length=50, default="Bank Transfer")
    notes = models.TextField(null=True, blank=True)

    # soft delete flag
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class QuickStaffPaymentTemplate(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)

    staff = models.ForeignKey(Staff, on_delete=models.CASCADE)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_method = models.CharField(max_length=50, default="Bank Transfer")
    notes = models.TextField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
