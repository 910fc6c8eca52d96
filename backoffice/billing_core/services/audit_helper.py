from typing import Optional

from ..models import Account, AuditLog


def log_action(
    *,
    action: str,
    instance,
    user=None,
    account: Optional[Account] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Call inside the same atomic block as the write being recorded.
    """

    if not account:
        account = getattr(instance, "account", None)

    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    AuditLog.objects.create(
        account=account,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
