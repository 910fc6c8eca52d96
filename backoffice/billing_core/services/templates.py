"""
Quick templates.

Executing a template is a thin adapter over create_transaction() and
record_staff_payment(): validation, totals and ledger mirroring live only
in those entry points.
"""
import datetime
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from ..exceptions import NotFoundOrForbidden
from ..models import (Client, Product, QuickStaffPaymentTemplate,
                      QuickTransactionTemplate, Staff)
from .atomic import atomic_block, parse_amount, parse_decimal
from .audit_helper import log_action
from .lifecycle import create_transaction
from .staff_payment import record_staff_payment

logger = logging.getLogger(__name__)


def _owned(model, account, pk, kind):
    try:
        return model.objects.for_account(account).get(pk=int(pk))
    except (TypeError, ValueError, model.DoesNotExist):
        raise NotFoundOrForbidden(kind)


def _active_template(model, account, template_id):
    try:
        return model.objects.active(account).get(pk=int(template_id))
    except (TypeError, ValueError, model.DoesNotExist):
        raise NotFoundOrForbidden("Template")


# ----------------------------
# Transaction templates
# ----------------------------
def list_transaction_templates(account):
    return list(
        QuickTransactionTemplate.objects.active(account)
        .select_related("client", "product")
        .order_by("name")
    )


def _apply_transaction_template_fields(template, account, data):
    if not data.get("name") or not data.get("client_id") or data.get("unit_price") in (None, ""):
        raise ValidationError("Name, client ID, and unit price are required")

    template.name = data["name"]
    template.description = data.get("description") or None
    template.client = _owned(Client, account, data["client_id"], "Client")
    template.product = (
        _owned(Product, account, data["product_id"], "Product")
        if data.get("product_id") else None
    )
    template.quantity = parse_decimal(
        data.get("quantity"), "quantity", default="1", max_digits=14, places=4,
    )
    if template.quantity <= 0:
        raise ValidationError("Quantity must be greater than zero")
    template.unit_price = parse_decimal(data.get("unit_price"), "unit price")
    template.tax_rate = parse_decimal(data.get("tax_rate"), "tax rate", default="0", max_digits=6)
    template.payment_method = data.get("payment_method") or "Bank Transfer"
    template.notes = data.get("notes") or None


def create_transaction_template(account, data, user=None):
    template = QuickTransactionTemplate(account=account)
    _apply_transaction_template_fields(template, account, data)
    with atomic_block("create quick transaction template"):
        template.save()
        log_action(action="create", instance=template, user=user)
    return template


def update_transaction_template(template_id, account, data, user=None):
    template = _owned(QuickTransactionTemplate, account, template_id, "Template")
    _apply_transaction_template_fields(template, account, data)
    if "is_active" in data:
        template.is_active = bool(data["is_active"])
    with atomic_block("update quick transaction template"):
        template.save()
        log_action(action="update", instance=template, user=user)
    return template


def delete_transaction_template(template_id, account, user=None):
    """Soft delete: the template is deactivated, never removed."""
    template = _owned(QuickTransactionTemplate, account, template_id, "Template")
    with atomic_block("delete quick transaction template"):
        template.is_active = False
        template.save(update_fields=["is_active", "updated_at"])
        log_action(action="deactivate", instance=template, user=user)
    return template


def execute_transaction_template(template_id, account, user=None, status="paid", today=None):
    """Create a brand-new transaction from the template's parameters."""
    template = _active_template(QuickTransactionTemplate, account, template_id)
    today = today or timezone.localdate()
    due_days = getattr(settings, "BILLING_DEFAULT_DUE_DAYS", 30)

    product = template.product
    description = (product.name if product else None) or template.description or "Service"

    txn = create_transaction(
        account,
        {
            "client_id": template.client_id,
            "transaction_date": today,
            "due_date": today + datetime.timedelta(days=due_days),
            "notes": template.notes or f"Quick transaction from template: {template.name}",
            "payment_method": template.payment_method,
            "status": status,
            "items": [
                {
                    "product_id": product.pk if product else None,
                    "description": description,
                    "quantity": template.quantity,
                    "unit_price": template.unit_price,
                    "tax_rate": template.tax_rate,
                }
            ],
        },
        user=user,
        ledger_description=f"Quick Transaction - {template.client.business_name}",
    )
    logger.info("Executed quick transaction template %s -> %s", template.pk, txn.transaction_id)
    return txn


# ----------------------------
# Staff payment templates
# ----------------------------
def list_staff_payment_templates(account):
    return list(
        QuickStaffPaymentTemplate.objects.active(account)
        .select_related("staff")
        .order_by("name")
    )


def _apply_staff_template_fields(template, account, data):
    if not data.get("name") or not data.get("staff_id") or data.get("amount") in (None, ""):
        raise ValidationError("Name, staff ID, and amount are required")

    template.name = data["name"]
    template.description = data.get("description") or None
    template.staff = _owned(Staff, account, data["staff_id"], "Staff member")
    template.amount = parse_amount(data["amount"], "Invalid amount")
    template.payment_method = data.get("payment_method") or "Bank Transfer"
    template.notes = data.get("notes") or None


def create_staff_payment_template(account, data, user=None):
    template = QuickStaffPaymentTemplate(account=account)
    _apply_staff_template_fields(template, account, data)
    with atomic_block("create quick staff payment template"):
        template.save()
        log_action(action="create", instance=template, user=user)
    return template


def update_staff_payment_template(template_id, account, data, user=None):
    template = _owned(QuickStaffPaymentTemplate, account, template_id, "Template")
    _apply_staff_template_fields(template, account, data)
    if "is_active" in data:
        template.is_active = bool(data["is_active"])
    with atomic_block("update quick staff payment template"):
        template.save()
        log_action(action="update", instance=template, user=user)
    return template


def delete_staff_payment_template(template_id, account, user=None):
    template = _owned(QuickStaffPaymentTemplate, account, template_id, "Template")
    with atomic_block("delete quick staff payment template"):
        template.is_active = False
        template.save(update_fields=["is_active", "updated_at"])
        log_action(action="deactivate", instance=template, user=user)
    return template


def execute_staff_payment_template(template_id, account, user=None, today=None):
    """Record a brand-new staff payment from the template's parameters."""
    template = _active_template(QuickStaffPaymentTemplate, account, template_id)
    payment = record_staff_payment(
        account,
        template.staff_id,
        template.amount,
        date_paid=today or timezone.localdate(),
        notes=template.notes or f"Quick payment from template: {template.name}",
        user=user,
        ledger_description=f"Quick Payment to {template.staff.name}",
    )
    logger.info("Executed quick staff payment template %s -> payment %s", template.pk, payment.pk)
    return payment
