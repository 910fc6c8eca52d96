from django.conf import settings  # To access global project settings
from django.db import models

from ..managers import TenantManager
from .entitymembership import Account


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Traceability for every reconciliation write
    account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Nullable in case the action was automated (template run, import script)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Common choices: create, update, delete, record_payment, execute_template
    action = models.CharField(max_length=50)
    # What kind of object was affected (e.g. "Transaction", "TransactionPayment")
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # Before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["account", "created_at"], name="auditlog_account_created_idx"),
        ]

    def __str__(self):
        return f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.object_type}({self.object_id})"
