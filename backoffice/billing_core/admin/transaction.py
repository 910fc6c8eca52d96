from django.contrib import admin

from ..models import Transaction, TransactionItem, TransactionPayment
from .mixins import TenantAdminMixin


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    fields = ("product", "description", "quantity", "unit_price", "tax_rate", "total")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class TransactionPaymentInline(admin.TabularInline):
    model = TransactionPayment
    extra = 0
    fields = ("amount", "payment_date", "payment_method", "reference_number")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# Amounts, items and payments change only through the service layer
@admin.register(Transaction)
class TransactionAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "transaction_id",
        "client",
        "transaction_date",
        "due_date",
        "status",
        "total_amount",
    )
    list_filter = ("status", "transaction_date")
    search_fields = ("transaction_id", "client__business_name", "reference_number")
    inlines = [TransactionItemInline, TransactionPaymentInline]
    readonly_fields = (
        "transaction_id", "client", "status", "subtotal", "tax_amount",
        "total_amount", "created_by", "created_at", "updated_at",
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("client")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
