import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

from django.core.exceptions import ValidationError
from django.db.models import Q, Sum

from ..exceptions import NotFoundOrForbidden
from ..models import (Client, Product, Transaction, TransactionItem,
                      TransactionPayment)
from ..models.transaction import TXN_STATUSES
from . import ledger
from .atomic import MAX_MONEY, atomic_block, parse_date, parse_decimal
from .audit_helper import log_action
from .status import derive_status

logger = logging.getLogger(__name__)


class ItemInput(NamedTuple):
    product: Optional[Product]
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal


def generate_transaction_id(transaction_date):
    """External id shown to users, e.g. INV-2026-4F3A9C1B."""
    return f"INV-{transaction_date.year}-{uuid.uuid4().hex[:8].upper()}"


# ----------------------------
# Input cleaning
# ----------------------------
def _get_client(account, client_id):
    if client_id in (None, ""):
        raise ValidationError("Client is required")
    try:
        return Client.objects.for_account(account).get(pk=int(client_id))
    except (TypeError, ValueError, Client.DoesNotExist):
        raise NotFoundOrForbidden("Client")


def _get_product(account, product_id):
    try:
        return Product.objects.for_account(account).get(pk=int(product_id))
    except (TypeError, ValueError, Product.DoesNotExist):
        raise NotFoundOrForbidden("Product")


def _clean_status(status, default="pending"):
    status = status or default
    if status not in TXN_STATUSES:
        raise ValidationError(f"Invalid status '{status}'")
    return status


def clean_items(account, raw_items):
    """Validate submitted line items; product defaults fill missing price/tax."""
    if not raw_items:
        raise ValidationError("At least one line item is required")

    items = []
    for raw in raw_items:
        product = None
        if raw.get("product_id"):
            product = _get_product(account, raw["product_id"])

        quantity = parse_decimal(
            raw.get("quantity"), "quantity", default="1", max_digits=14, places=4,
        )
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        unit_price = parse_decimal(
            raw.get("unit_price"), "unit price",
            default=product.price if product else None,
        )
        tax_rate = parse_decimal(
            raw.get("tax_rate"), "tax rate",
            default=product.tax_rate if product else "0", max_digits=6,
        )
        description = raw.get("description") or (
            (product.description or product.name) if product else ""
        )
        items.append(ItemInput(product, description, quantity, unit_price, tax_rate))
    return items


def _compute_totals(items):
    try:
        subtotal, tax_amount, total_amount = Transaction.compute_totals(items)
    except InvalidOperation:
        raise ValidationError("Transaction total is too large")
    if total_amount >= MAX_MONEY:
        raise ValidationError("Transaction total is too large")
    return subtotal, tax_amount, total_amount


def _insert_items(txn, items):
    for item in items:
        if item.product is not None:
            TransactionItem.from_product.create_from_product(
                item.product,
                transaction=txn,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
            )
        else:
            TransactionItem.objects.create(
                transaction=txn,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
            )


def _lock_transaction(account, transaction_id):
    try:
        return Transaction.objects.select_for_update().get(
            account=account, transaction_id=transaction_id
        )
    except Transaction.DoesNotExist:
        raise NotFoundOrForbidden("Transaction")


# ----------------------------
# Transaction workflows
# ----------------------------
def create_transaction(account, data, user=None, ledger_description=None):
    """
    Create a transaction with its items.

    Row, items and (for a sale settled up front, status "paid") the income
    mirror are written in one atomic block; on failure nothing persists and
    the generated external id is discarded.
    """
    client = _get_client(account, data.get("client_id"))
    status = _clean_status(data.get("status"))
    transaction_date = parse_date(data.get("transaction_date"), "transaction date")
    due_date = parse_date(data.get("due_date"), "due date", default_today=False)
    items = clean_items(account, data.get("items"))
    subtotal, tax_amount, total_amount = _compute_totals(items)
    user = user if getattr(user, "is_authenticated", False) else None

    with atomic_block("create transaction"):
        txn = Transaction(
            transaction_id=generate_transaction_id(transaction_date),
            account=account,
            created_by=user,
            client=client,
            transaction_date=transaction_date,
            due_date=due_date,
            reference_number=data.get("reference_number") or None,
            notes=data.get("notes") or None,
            terms=data.get("terms") or None,
            payment_method=data.get("payment_method") or None,
            status=status,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
        )
        txn.full_clean()
        txn.save()

        _insert_items(txn, items)

        if txn.status == "paid":
            ledger.mirror_transaction_creation(txn, user=user, description=ledger_description)

        log_action(
            action="create",
            instance=txn,
            user=user,
            changes={
                "transaction_id": txn.transaction_id,
                "status": txn.status,
                "total_amount": str(txn.total_amount),
            },
        )

    logger.info(
        "Created transaction %s for client %s (%s, total %s)",
        txn.transaction_id, client.pk, txn.status, txn.total_amount,
    )
    return txn


def update_transaction(transaction_id, account, data, user=None):
    """
    Update header fields and replace the full item set.

    The total may not drop below what has already been paid, and once
    money has been applied the status cannot return to draft/pending.
    """
    client = _get_client(account, data.get("client_id"))
    status = _clean_status(data.get("status"))
    transaction_date = parse_date(data.get("transaction_date"), "transaction date")
    due_date = parse_date(data.get("due_date"), "due date", default_today=False)
    items = clean_items(account, data.get("items"))
    subtotal, tax_amount, total_amount = _compute_totals(items)

    with atomic_block("update transaction"):
        txn = _lock_transaction(account, transaction_id)

        paid = TransactionPayment.objects.filter(transaction=txn).aggregate(
            total=Sum("amount"))["total"] or Decimal("0.00")
        if total_amount < paid:
            raise ValidationError(
                f"Transaction total cannot be less than the amount already paid ({paid:.2f})"
            )
        if paid > 0:
            if status == "draft":
                status = "pending"
            status = derive_status(total_amount, paid, status)

        txn.client = client
        txn.transaction_date = transaction_date
        txn.due_date = due_date
        txn.reference_number = data.get("reference_number") or None
        txn.notes = data.get("notes") or None
        txn.terms = data.get("terms") or None
        txn.payment_method = data.get("payment_method") or None
        txn.status = status
        txn.subtotal = subtotal
        txn.tax_amount = tax_amount
        txn.total_amount = total_amount
        txn.full_clean()
        txn.save()

        # full replace, never a partial patch
        txn.items.all().delete()
        _insert_items(txn, items)

        # keep the creation mirror in step with the new total/date/client
        mirror = ledger.find_mirror(account, ledger.CLIENT_TRANSACTION, txn)
        if mirror.exists():
            ledger.update_mirror(
                account, ledger.CLIENT_TRANSACTION, txn,
                amount=txn.total_amount,
                entry_date=txn.transaction_date,
                client=txn.client,
            )
        elif txn.status == "paid" and paid == 0:
            ledger.mirror_transaction_creation(txn, user=user)

        log_action(
            action="update",
            instance=txn,
            user=user,
            changes={"status": txn.status, "total_amount": str(txn.total_amount)},
        )

    logger.info("Updated transaction %s", txn.transaction_id)
    return txn


def delete_transaction(transaction_id, account, user=None):
    """
    Delete a transaction with its items, payments and every ledger mirror
    that points at it (creation mirror and one per payment).
    """
    with atomic_block("delete transaction"):
        txn = _lock_transaction(account, transaction_id)

        payments = list(TransactionPayment.objects.filter(transaction=txn))
        ledger.delete_mirrors(account, ledger.TRANSACTION_PAYMENT, payments)
        ledger.delete_mirror(account, ledger.CLIENT_TRANSACTION, txn, missing_ok=True)

        log_action(
            action="delete",
            instance=txn,
            user=user,
            changes={"transaction_id": txn.transaction_id, "payments": len(payments)},
        )

        # cascade removes items and payments
        txn.delete()

    logger.info("Deleted transaction %s", transaction_id)


# ----------------------------
# Reads
# ----------------------------
def get_transaction(transaction_id, account):
    try:
        return (
            Transaction.objects.for_account(account)
            .select_related("client")
            .prefetch_related("items__product")
            .get(transaction_id=transaction_id)
        )
    except Transaction.DoesNotExist:
        raise NotFoundOrForbidden("Transaction")


def filter_transactions(account, status=None, client_id=None, start_date=None,
                        end_date=None, search=None):
    """Parameterized filtering; caller values never reach the query text."""
    qs = Transaction.objects.for_account(account).select_related("client")

    if status and status != "all":
        qs = qs.filter(status=status)
    if client_id and client_id != "all":
        try:
            qs = qs.filter(client_id=int(client_id))
        except (TypeError, ValueError):
            raise ValidationError("Invalid client id")
    if start_date:
        qs = qs.filter(transaction_date__gte=parse_date(start_date, "start date"))
    if end_date:
        qs = qs.filter(transaction_date__lte=parse_date(end_date, "end date"))
    if search:
        qs = qs.filter(
            Q(transaction_id__icontains=search)
            | Q(client__business_name__icontains=search)
            | Q(reference_number__icontains=search)
        )
    return qs.order_by("-created_at", "-pk")
