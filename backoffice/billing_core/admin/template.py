from django.contrib import admin

from ..models import QuickStaffPaymentTemplate, QuickTransactionTemplate
from .mixins import TenantAdminMixin


@admin.register(QuickTransactionTemplate)
class QuickTransactionTemplateAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "client", "product", "quantity", "unit_price", "tax_rate", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "client__business_name")


@admin.register(QuickStaffPaymentTemplate)
class QuickStaffPaymentTemplateAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "staff", "amount", "payment_method", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "staff__name")
