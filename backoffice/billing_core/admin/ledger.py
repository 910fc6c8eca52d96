from django.contrib import admin

from ..models import AuditLog, LedgerEntry
from .readonly import ReadOnlyAdmin


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdmin):
    list_display = (
        "entry_date", "entry_type", "amount", "reference_type",
        "reference_id", "client", "staff",
    )
    list_filter = ("entry_type", "reference_type", "entry_date")
    search_fields = ("reference_id", "description")


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "user", "action", "object_type", "object_id")
    list_filter = ("action", "object_type")
    search_fields = ("object_id",)
