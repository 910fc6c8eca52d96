"""
JSON endpoints.

Each endpoint is action-dispatched: the body carries `action` plus its
arguments, and the response is always {"success", "data"?, "error"?}.
json_endpoint is the error boundary; no exception escapes it.
"""
import json
import logging
from functools import wraps

from django.core.exceptions import BadRequest, PermissionDenied, ValidationError
from django.db import DatabaseError
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .exceptions import ExceedsBalance, NotFoundOrForbidden, PersistenceFailure
from .services import lifecycle, payment, reporting, staff_payment, templates

logger = logging.getLogger(__name__)

WRITE_ROLES = ("admin", "staff")


# ----------------------------
# Boundary
# ----------------------------
def _error(message, status, data=None):
    body = {"success": False, "error": message}
    if data is not None:
        body["data"] = data
    return JsonResponse(body, status=status)


def json_endpoint(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return _error("Authentication required", 401)
        if getattr(request, "account", None) is None:
            return _error("No active account", 403)

        try:
            data = view(request, *args, **kwargs)
        except ExceedsBalance as exc:
            return _error(str(exc), 400, {"remaining_amount": float(exc.remaining)})
        except ValidationError as exc:
            return _error("; ".join(exc.messages), 400)
        except BadRequest as exc:
            return _error(str(exc), 400)
        except NotFoundOrForbidden as exc:
            return _error(str(exc), 404)
        except PermissionDenied as exc:
            return _error(str(exc) or "Insufficient permissions", 403)
        except (PersistenceFailure, DatabaseError):
            logger.exception("Request to %s failed", request.path)
            return _error("Internal server error", 500)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return _error("Internal server error", 500)

        return JsonResponse({"success": True, "data": data})

    return wrapper


def _body(request):
    if request.method != "POST":
        return {}
    try:
        body = json.loads(request.body or b"{}")
    except (TypeError, ValueError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(body, dict):
        raise BadRequest("Invalid JSON body")
    return body


def _require_write(request):
    if getattr(request, "role", None) not in WRITE_ROLES:
        raise PermissionDenied("Insufficient permissions")


def _dispatch(request, handlers):
    body = _body(request)
    action = body.get("action")
    handler = handlers.get(action) if isinstance(action, str) else None
    if handler is None:
        raise BadRequest("Invalid action")
    return handler(request, body)


def _money(value):
    return float(value) if value is not None else None


def _iso(value):
    return value.isoformat() if value else None


# ----------------------------
# Serializers
# ----------------------------
def serialize_payment(p):
    return {
        "id": p.pk,
        "transaction_id": p.transaction_id,
        "amount": _money(p.amount),
        "payment_date": _iso(p.payment_date),
        "payment_method": p.payment_method,
        "reference_number": p.reference_number,
        "notes": p.notes,
        "created_by": p.created_by_id,
        "created_at": _iso(p.created_at),
        "updated_at": _iso(p.updated_at),
    }


def serialize_transaction(txn, with_items=False):
    data = {
        "id": txn.pk,
        "transactionId": txn.transaction_id,
        "clientId": txn.client_id,
        "clientName": txn.client.business_name,
        "transactionDate": _iso(txn.transaction_date),
        "dueDate": _iso(txn.due_date),
        "referenceNumber": txn.reference_number,
        "notes": txn.notes,
        "terms": txn.terms,
        "paymentMethod": txn.payment_method,
        "status": txn.status,
        "subtotal": _money(txn.subtotal),
        "taxAmount": _money(txn.tax_amount),
        "totalAmount": _money(txn.total_amount),
        "createdAt": _iso(txn.created_at),
        "updatedAt": _iso(txn.updated_at),
    }
    if with_items:
        data["lineItems"] = [
            {
                "id": item.pk,
                "productId": item.product_id,
                "description": item.description,
                "quantity": float(item.quantity),
                "unitPrice": _money(item.unit_price),
                "taxRate": float(item.tax_rate),
                "total": _money(item.total),
            }
            for item in txn.items.all()
        ]
    return data


def serialize_entry(entry):
    return {
        "id": entry.pk,
        "entry_date": _iso(entry.entry_date),
        "entry_type": entry.entry_type,
        "amount": _money(entry.amount),
        "description": entry.description,
        "reference_id": entry.reference_id,
        "reference_type": entry.reference_type,
        "client_id": entry.client_id,
        "staff_id": entry.staff_id,
        "client_name": entry.client.business_name if entry.client_id else None,
        "staff_name": entry.staff.name if entry.staff_id else None,
        "created_at": _iso(entry.created_at),
        "updated_at": _iso(entry.updated_at),
    }


def serialize_staff_payment(p):
    return {
        "id": p.pk,
        "staff_id": p.staff_id,
        "amount": _money(p.amount),
        "date_paid": _iso(p.date_paid),
        "notes": p.notes,
        "created_at": _iso(p.created_at),
    }


def serialize_transaction_template(t):
    return {
        "id": t.pk,
        "name": t.name,
        "description": t.description,
        "client_id": t.client_id,
        "client_name": t.client.business_name,
        "product_id": t.product_id,
        "product_name": t.product.name if t.product_id else None,
        "quantity": float(t.quantity),
        "unit_price": _money(t.unit_price),
        "tax_rate": float(t.tax_rate),
        "payment_method": t.payment_method,
        "notes": t.notes,
        "is_active": t.is_active,
    }


def serialize_staff_template(t):
    return {
        "id": t.pk,
        "name": t.name,
        "description": t.description,
        "staff_id": t.staff_id,
        "staff_name": t.staff.name,
        "amount": _money(t.amount),
        "payment_method": t.payment_method,
        "notes": t.notes,
        "is_active": t.is_active,
    }


def _summary_rows(rows):
    return [{k: (_money(v) if k in ("income", "expense", "profit") else v) for k, v in row.items()}
            for row in rows]


# ----------------------------
# Transaction payments
# ----------------------------
def _get_payments(request, body):
    if not body.get("transactionId"):
        raise ValidationError("Transaction ID is required")
    overview = payment.get_payments(body["transactionId"], request.account)
    return {
        "payments": [serialize_payment(p) for p in overview.payments],
        "totalPaid": _money(overview.total_paid),
        "remainingAmount": _money(overview.remaining_amount),
        "transactionTotal": _money(overview.transaction.total_amount),
    }


def _payment_result(result, message):
    return {
        "payment": serialize_payment(result.payment),
        "transaction_status": result.transaction_status,
        "total_paid": _money(result.total_paid),
        "remaining_amount": _money(result.remaining_amount),
        "message": message,
    }


def _record_payment(request, body):
    _require_write(request)
    if not body.get("transactionId") or body.get("amount") in (None, ""):
        raise ValidationError("Transaction ID and amount are required")
    result = payment.record_payment(
        body["transactionId"],
        request.account,
        body["amount"],
        payment_date=body.get("paymentDate"),
        payment_method=body.get("paymentMethod"),
        reference_number=body.get("referenceNumber"),
        notes=body.get("notes"),
        user=request.user,
    )
    return _payment_result(result, "Payment recorded successfully")


def _update_payment(request, body):
    _require_write(request)
    if not body.get("paymentId") or body.get("amount") in (None, ""):
        raise ValidationError("Payment ID and amount are required")
    result = payment.update_payment(
        body["paymentId"],
        request.account,
        body["amount"],
        payment_date=body.get("paymentDate"),
        payment_method=body.get("paymentMethod"),
        reference_number=body.get("referenceNumber"),
        notes=body.get("notes"),
        user=request.user,
    )
    return _payment_result(result, "Payment updated successfully")


def _delete_payment(request, body):
    _require_write(request)
    if not body.get("paymentId"):
        raise ValidationError("Payment ID is required")
    txn = payment.delete_payment(body["paymentId"], request.account, user=request.user)
    return {"message": "Payment deleted successfully", "transaction_status": txn.status}


def _get_payment_summary(request, body):
    if not body.get("transactionId"):
        raise ValidationError("Transaction ID is required")
    summary = payment.get_payment_summary(body["transactionId"], request.account)
    for key in ("transaction_amount", "total_paid", "remaining_amount"):
        summary[key] = _money(summary[key])
    return summary


@require_http_methods(["POST"])
@json_endpoint
def transaction_payments(request):
    return _dispatch(request, {
        "get-payments": _get_payments,
        "record-payment": _record_payment,
        "update-payment": _update_payment,
        "delete-payment": _delete_payment,
        "get-payment-summary": _get_payment_summary,
    })


# ----------------------------
# Transactions
# ----------------------------
def _line_items(body):
    raw_items = body.get("lineItems") or []
    if not isinstance(raw_items, list) or not all(isinstance(item, dict) for item in raw_items):
        raise BadRequest("Invalid line items")
    return [
        {
            "product_id": item.get("productId"),
            "description": item.get("description"),
            "quantity": item.get("quantity"),
            "unit_price": item.get("unitPrice"),
            "tax_rate": item.get("taxRate"),
        }
        for item in raw_items
    ]


def _transaction_data(body):
    return {
        "client_id": body.get("clientId"),
        "status": body.get("status"),
        "transaction_date": body.get("transactionDate"),
        "due_date": body.get("dueDate"),
        "reference_number": body.get("referenceNumber"),
        "notes": body.get("notes"),
        "terms": body.get("terms"),
        "payment_method": body.get("paymentMethod"),
        "items": _line_items(body),
    }


def _create_transaction(request, body):
    _require_write(request)
    txn = lifecycle.create_transaction(request.account, _transaction_data(body), user=request.user)
    return serialize_transaction(txn)


def _update_transaction(request, body):
    _require_write(request)
    if not body.get("transactionId"):
        raise ValidationError("Transaction ID is required")
    txn = lifecycle.update_transaction(
        body["transactionId"], request.account, _transaction_data(body), user=request.user
    )
    return serialize_transaction(txn)


def _delete_transaction(request, body):
    _require_write(request)
    if not body.get("transactionId"):
        raise ValidationError("Transaction ID is required")
    lifecycle.delete_transaction(body["transactionId"], request.account, user=request.user)
    return {"message": "Transaction deleted successfully"}


def _get_transaction(request, body):
    if not body.get("transactionId"):
        raise ValidationError("Transaction ID is required")
    txn = lifecycle.get_transaction(body["transactionId"], request.account)
    return serialize_transaction(txn, with_items=True)


def _list_transactions(request, body):
    qs = lifecycle.filter_transactions(
        request.account,
        status=body.get("status"),
        client_id=body.get("clientId"),
        start_date=body.get("startDate"),
        end_date=body.get("endDate"),
        search=body.get("search"),
    )
    return {"transactions": [serialize_transaction(txn) for txn in qs]}


@require_http_methods(["POST"])
@json_endpoint
def transactions(request):
    return _dispatch(request, {
        "create": _create_transaction,
        "update": _update_transaction,
        "delete": _delete_transaction,
        "get": _get_transaction,
        "list": _list_transactions,
    })


# ----------------------------
# Ledger
# ----------------------------
def _ledger_entries(request, body):
    entries = reporting.ledger_entries(
        request.account,
        year=body.get("year"),
        month=body.get("month"),
        client_id=body.get("clientId"),
        staff_id=body.get("staffId"),
    )
    return {"entries": [serialize_entry(e) for e in entries]}


def _ledger_monthly(request, body):
    return {"summary": _summary_rows(reporting.monthly_summary(request.account, body.get("year")))}


def _ledger_current_month(request, body):
    result = reporting.current_month_summary(request.account)
    return {
        "summary": _summary_rows([result["summary"]])[0],
        "entries": [serialize_entry(e) for e in result["entries"]],
    }


def _ledger_yearly(request, body):
    return {"summary": _summary_rows(reporting.yearly_summary(request.account))}


def _ledger_client_totals(request, body):
    rows = reporting.client_totals(request.account)
    for row in rows:
        row["total"] = _money(row["total"])
    return {"totals": rows}


@require_http_methods(["POST"])
@json_endpoint
def ledger(request):
    return _dispatch(request, {
        "get-entries": _ledger_entries,
        "get-summary-by-month": _ledger_monthly,
        "get-current-month-summary": _ledger_current_month,
        "get-yearly-summary": _ledger_yearly,
        "get-client-totals": _ledger_client_totals,
    })


# ----------------------------
# Staff payments
# ----------------------------
def _staff_record(request, body):
    _require_write(request)
    if not body.get("staffId") or body.get("amount") in (None, ""):
        raise ValidationError("Staff ID and amount are required")
    p = staff_payment.record_staff_payment(
        request.account, body["staffId"], body["amount"],
        date_paid=body.get("datePaid"), notes=body.get("notes"), user=request.user,
    )
    return {"payment": serialize_staff_payment(p), "message": "Payment recorded successfully"}


def _staff_update(request, body):
    _require_write(request)
    if not body.get("paymentId") or body.get("amount") in (None, ""):
        raise ValidationError("Payment ID and amount are required")
    p = staff_payment.update_staff_payment(
        body["paymentId"], request.account, body["amount"],
        date_paid=body.get("datePaid"), notes=body.get("notes"), user=request.user,
    )
    return {"payment": serialize_staff_payment(p), "message": "Payment updated successfully"}


def _staff_delete(request, body):
    _require_write(request)
    if not body.get("paymentId"):
        raise ValidationError("Payment ID is required")
    staff_payment.delete_staff_payment(body["paymentId"], request.account, user=request.user)
    return {"message": "Payment deleted successfully"}


def _staff_payments(request, body):
    payments = staff_payment.get_staff_payments(request.account, body.get("staffId"))
    return {"payments": [serialize_staff_payment(p) for p in payments]}


def _staff_total(request, body):
    total = staff_payment.get_staff_total_paid(request.account, body.get("staffId"))
    return {"total": _money(total)}


def _staff_stats(request, body):
    try:
        months = int(body.get("months") or 6)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("Invalid months")
    stats = staff_payment.staff_payment_stats(request.account, body.get("staffId"), months=months)
    return {"stats": [{"month": s["month"], "total": _money(s["total"])} for s in stats]}


@require_http_methods(["POST"])
@json_endpoint
def staff_payments(request):
    return _dispatch(request, {
        "record-payment": _staff_record,
        "update-payment": _staff_update,
        "delete-payment": _staff_delete,
        "get-payments": _staff_payments,
        "get-total-paid": _staff_total,
        "get-stats": _staff_stats,
    })


# ----------------------------
# Quick templates
# ----------------------------
def _template_id(body):
    if not body.get("template_id"):
        raise ValidationError("Template ID is required")
    return body["template_id"]


@require_http_methods(["GET", "POST"])
@json_endpoint
def quick_transactions(request):
    if request.method == "GET":
        return {"templates": [serialize_transaction_template(t)
                              for t in templates.list_transaction_templates(request.account)]}

    def create(request, body):
        _require_write(request)
        t = templates.create_transaction_template(request.account, body, user=request.user)
        return {"template": serialize_transaction_template(t)}

    def update(request, body):
        _require_write(request)
        t = templates.update_transaction_template(
            _template_id(body), request.account, body, user=request.user)
        return {"template": serialize_transaction_template(t)}

    def delete(request, body):
        _require_write(request)
        templates.delete_transaction_template(_template_id(body), request.account, user=request.user)
        return {"message": "Template deleted successfully"}

    def execute(request, body):
        _require_write(request)
        txn = templates.execute_transaction_template(
            _template_id(body), request.account, user=request.user,
            status=body.get("status") or "paid",
        )
        return {"transaction": serialize_transaction(txn),
                "message": "Transaction created successfully"}

    return _dispatch(request, {
        "create-template": create,
        "update-template": update,
        "delete-template": delete,
        "execute-template": execute,
    })


@require_http_methods(["GET", "POST"])
@json_endpoint
def quick_staff_payments(request):
    if request.method == "GET":
        return {"templates": [serialize_staff_template(t)
                              for t in templates.list_staff_payment_templates(request.account)]}

    def create(request, body):
        _require_write(request)
        t = templates.create_staff_payment_template(request.account, body, user=request.user)
        return {"template": serialize_staff_template(t)}

    def update(request, body):
        _require_write(request)
        t = templates.update_staff_payment_template(
            _template_id(body), request.account, body, user=request.user)
        return {"template": serialize_staff_template(t)}

    def delete(request, body):
        _require_write(request)
        templates.delete_staff_payment_template(_template_id(body), request.account, user=request.user)
        return {"message": "Template deleted successfully"}

    def execute(request, body):
        _require_write(request)
        p = templates.execute_staff_payment_template(
            _template_id(body), request.account, user=request.user)
        return {"payment": serialize_staff_payment(p),
                "message": "Payment recorded successfully"}

    return _dispatch(request, {
        "create-template": create,
        "update-template": update,
        "delete-template": delete,
        "execute-template": execute,
    })


# ----------------------------
# Dashboard
# ----------------------------
@require_http_methods(["GET"])
@json_endpoint
def dashboard(request):
    stats = reporting.dashboard_stats(request.account)
    stats["total_revenue"] = _money(stats["total_revenue"])
    return {"stats": stats}
