from django.contrib import admin

from ..models import Client, Product, Staff, StaffPayment
from .mixins import TenantAdminMixin


@admin.register(Client)
class ClientAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "business_name", "contact_person", "email", "is_active")
    list_filter = ("is_active",)
    search_fields = ("business_name", "contact_person", "email")


@admin.register(Product)
class ProductAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "name", "category", "price", "tax_rate", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("name",)


@admin.register(Staff)
class StaffAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "name", "role", "email", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "email")


# Staff payments carry a ledger mirror; they are only written through services
@admin.register(StaffPayment)
class StaffPaymentAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "staff", "amount", "date_paid")
    list_filter = ("date_paid",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
