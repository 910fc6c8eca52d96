"""Remove a staff member's expense mirrors together with the staff row."""
import logging

from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Staff
from .services import ledger

logger = logging.getLogger(__name__)


# pre_delete fires inside the same delete as the cascade to StaffPayment
@receiver(pre_delete, sender=Staff)
def delete_staff_payment_mirrors(sender, instance, **kwargs):
    payments = list(instance.payments.all())
    deleted = ledger.delete_mirrors(instance.account, ledger.STAFF_PAYMENT, payments)
    if deleted:
        logger.info("Removed %d ledger mirrors of staff %s", deleted, instance.pk)
