from decimal import Decimal

from django.db import models


# -----------------------------------------
# Enforce account scoping across all models
# that belong to a billing account
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_account(self, account):
        return self.filter(account=account)

    def active(self, account):
        return self.filter(
                            account=account,  # enforce account scoping
                            is_active=True    # only fetch active records
                        )
    # Enables query:
    # Client.objects.active(account)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager):

    def get_queryset(self):  # every model gets TenantQuerySet
        return TenantQuerySet(self.model, using=self._db)

    def for_account(self, account):
        return self.get_queryset().for_account(account)

    def active(self, account):
        return self.get_queryset().active(account)


# Create a TransactionItem, defaulting unit_price/tax_rate from Product if not given.
class TransactionItemProductManager(models.Manager):
    def create_from_product(self, product, **kwargs):
        if kwargs.get("unit_price") is None:
            kwargs["unit_price"] = getattr(product, "price", Decimal("0.00"))
        if kwargs.get("tax_rate") is None:
            kwargs["tax_rate"] = getattr(product, "tax_rate", Decimal("0.00"))
        if not kwargs.get("description"):
            kwargs["description"] = product.description or product.name
        kwargs["product"] = product
        return super().create(**kwargs)
