import json
from decimal import Decimal

import pytest
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory

from billing_core import views
from billing_core.middleware import AccountContextMiddleware
from billing_core.models import (Account, AccountMembership, Client,
                                 LedgerEntry, Product,
                                 QuickTransactionTemplate, Transaction)
from billing_core.services.lifecycle import create_transaction


@pytest.fixture
def setup(django_user_model):
    user = django_user_model.objects.create_user(username="alice", password="pw")
    account = Account.objects.create(name="Company A", slug="com_a")
    AccountMembership.objects.create(user=user, account=account, role="staff")
    client = Client.objects.create(account=account, business_name="Acme")
    txn = create_transaction(account, {
        "client_id": client.pk,
        "items": [{"description": "Work", "unit_price": "1000.00"}],
    })
    return {"user": user, "account": account, "client": client, "txn": txn}


def call(view, setup, body=None, role="staff", method="post", user=None):
    factory = RequestFactory()
    if method == "post":
        request = factory.post("/api/", data=json.dumps(body or {}), content_type="application/json")
    else:
        request = factory.get("/api/")
    request.user = user or setup["user"]
    # manually simulate middleware
    request.account = setup["account"]
    request.role = role
    response = view(request)
    return response.status_code, json.loads(response.content)


@pytest.mark.django_db
def test_record_payment_response_shape(setup):
    status, body = call(views.transaction_payments, setup, {
        "action": "record-payment",
        "transactionId": setup["txn"].transaction_id,
        "amount": 400,
        "paymentDate": "2026-03-05",
        "paymentMethod": "Cash",
    })

    assert status == 200
    assert body["success"] is True
    data = body["data"]
    assert data["transaction_status"] == "partial"
    assert data["total_paid"] == 400.0
    assert data["remaining_amount"] == 600.0
    assert data["message"] == "Payment recorded successfully"
    assert data["payment"]["amount"] == 400.0
    assert data["payment"]["payment_date"] == "2026-03-05"


@pytest.mark.django_db
def test_overshoot_returns_remaining(setup):
    call(views.transaction_payments, setup, {
        "action": "record-payment", "transactionId": setup["txn"].transaction_id, "amount": "400",
    })
    status, body = call(views.transaction_payments, setup, {
        "action": "record-payment", "transactionId": setup["txn"].transaction_id, "amount": "700",
    })

    assert status == 400
    assert body["success"] is False
    assert "600.00" in body["error"]
    assert body["data"]["remaining_amount"] == 600.0


@pytest.mark.django_db
def test_get_payments_and_summary(setup):
    tid = setup["txn"].transaction_id
    call(views.transaction_payments, setup, {"action": "record-payment", "transactionId": tid, "amount": "250"})

    status, body = call(views.transaction_payments, setup, {"action": "get-payments", "transactionId": tid})
    assert status == 200
    assert body["data"]["totalPaid"] == 250.0
    assert body["data"]["remainingAmount"] == 750.0
    assert body["data"]["transactionTotal"] == 1000.0
    assert len(body["data"]["payments"]) == 1

    status, body = call(views.transaction_payments, setup, {"action": "get-payment-summary", "transactionId": tid})
    assert body["data"]["payment_percentage"] == 25
    assert body["data"]["payment_count"] == 1
    assert body["data"]["status"] == "partial"


@pytest.mark.django_db
def test_error_mapping(setup):
    tid = setup["txn"].transaction_id

    status, body = call(views.transaction_payments, setup, {"action": "nope"})
    assert (status, body["error"]) == (400, "Invalid action")

    status, body = call(views.transaction_payments, setup,
                        {"action": "record-payment", "transactionId": tid, "amount": "-3"})
    assert (status, body["error"]) == (400, "Invalid payment amount")

    status, body = call(views.transaction_payments, setup,
                        {"action": "record-payment", "transactionId": tid})
    assert (status, body["error"]) == (400, "Transaction ID and amount are required")

    status, body = call(views.transaction_payments, setup,
                        {"action": "delete-payment", "paymentId": 424242})
    assert (status, body["error"]) == (404, "Payment not found")


@pytest.mark.django_db
def test_cross_account_access_is_not_found(setup, django_user_model):
    other = Account.objects.create(name="Company B", slug="com_b")
    mallory = django_user_model.objects.create_user(username="mallory", password="pw")
    request_setup = dict(setup, account=other)

    status, body = call(views.transaction_payments, request_setup, {
        "action": "get-payments", "transactionId": setup["txn"].transaction_id,
    }, user=mallory)

    assert status == 404
    assert body["error"] == "Transaction not found"


@pytest.mark.django_db
def test_viewer_cannot_write_but_can_read(setup):
    tid = setup["txn"].transaction_id
    status, body = call(views.transaction_payments, setup,
                        {"action": "record-payment", "transactionId": tid, "amount": "1"}, role="viewer")
    assert (status, body["error"]) == (403, "Insufficient permissions")

    status, _ = call(views.transaction_payments, setup,
                     {"action": "get-payments", "transactionId": tid}, role="viewer")
    assert status == 200


@pytest.mark.django_db
def test_anonymous_user_is_rejected(setup):
    status, body = call(views.transaction_payments, setup, {"action": "get-payments"}, user=AnonymousUser())
    assert (status, body["error"]) == (401, "Authentication required")


@pytest.mark.django_db
def test_transactions_endpoint_create_and_get(setup):
    product = Product.objects.create(account=setup["account"], name="Consulting",
                                     price=Decimal("250.00"), tax_rate=Decimal("10.00"))
    status, body = call(views.transactions, setup, {
        "action": "create",
        "clientId": setup["client"].pk,
        "status": "paid",
        "transactionDate": "2026-03-15",
        "lineItems": [{"productId": product.pk, "quantity": 1}],
    })
    assert status == 200
    assert body["data"]["totalAmount"] == 275.0
    tid = body["data"]["transactionId"]

    status, body = call(views.transactions, setup, {"action": "get", "transactionId": tid})
    assert body["data"]["lineItems"][0]["unitPrice"] == 250.0

    status, body = call(views.transactions, setup, {"action": "list", "status": "paid"})
    assert [t["transactionId"] for t in body["data"]["transactions"]] == [tid]

    status, body = call(views.transactions, setup, {"action": "delete", "transactionId": tid})
    assert status == 200
    assert not Transaction.objects.filter(transaction_id=tid).exists()
    assert not LedgerEntry.objects.exists()


@pytest.mark.django_db
def test_quick_transaction_endpoint(setup):
    status, body = call(views.quick_transactions, setup, {
        "action": "create-template",
        "name": "Monthly",
        "client_id": setup["client"].pk,
        "unit_price": "100.00",
    })
    assert status == 200
    template_id = body["data"]["template"]["id"]

    status, body = call(views.quick_transactions, setup, method="get")
    assert [t["name"] for t in body["data"]["templates"]] == ["Monthly"]

    status, body = call(views.quick_transactions, setup,
                        {"action": "execute-template", "template_id": template_id})
    assert body["data"]["transaction"]["status"] == "paid"
    assert LedgerEntry.objects.get().amount == Decimal("100.00")

    call(views.quick_transactions, setup, {"action": "delete-template", "template_id": template_id})
    assert not QuickTransactionTemplate.objects.get(pk=template_id).is_active


@pytest.mark.django_db
def test_ledger_and_dashboard_endpoints(setup):
    call(views.transaction_payments, setup, {
        "action": "record-payment", "transactionId": setup["txn"].transaction_id,
        "amount": "400", "paymentDate": "2026-03-05",
    })

    status, body = call(views.ledger, setup, {"action": "get-summary-by-month", "year": 2026})
    assert status == 200
    assert body["data"]["summary"][2] == {"month": 3, "income": 400.0, "expense": 0.0, "profit": 400.0}

    status, body = call(views.ledger, setup, {"action": "get-entries", "year": 2026, "month": 3})
    assert body["data"]["entries"][0]["client_name"] == "Acme"

    status, body = call(views.dashboard, setup, method="get")
    assert body["data"]["stats"]["active_client_count"] == 1


@pytest.mark.django_db
def test_middleware_sets_account_and_role(setup, django_user_model):
    middleware = AccountContextMiddleware(get_response=lambda request: None)

    request = RequestFactory().get("/")
    request.user = setup["user"]
    request.session = {}
    middleware.process_request(request)
    assert request.account == setup["account"]
    assert request.role == "staff"

    # a session pointing at a foreign account yields no context
    other = Account.objects.create(name="Company B", slug="com_b")
    request.session = {"active_account_id": other.pk}
    middleware.process_request(request)
    assert request.account is None

    request = RequestFactory().get("/")
    request.user = AnonymousUser()
    request.session = {}
    middleware.process_request(request)
    assert request.account is None


@pytest.mark.django_db
def test_malformed_input_stays_inside_the_response_shape(setup):
    tid = setup["txn"].transaction_id

    status, body = call(views.transaction_payments, setup,
                        {"action": "record-payment", "transactionId": tid, "amount": "1e30"})
    assert (status, body) == (400, {"success": False, "error": "Invalid payment amount"})

    status, body = call(views.transaction_payments, setup,
                        {"action": ["get-payments"], "transactionId": tid})
    assert (status, body["error"]) == (400, "Invalid action")

    status, body = call(views.transactions, setup,
                        {"action": "create", "clientId": setup["client"].pk, "lineItems": [1]})
    assert (status, body["error"]) == (400, "Invalid line items")

    status, body = call(views.transactions, setup,
                        {"action": "create", "clientId": setup["client"].pk, "lineItems": {"a": 1}})
    assert (status, body["error"]) == (400, "Invalid line items")

    status, body = call(views.transactions, setup, {
        "action": "create",
        "clientId": setup["client"].pk,
        "lineItems": [{"description": "Work", "unitPrice": "1e40"}],
    })
    assert (status, body["error"]) == (400, "Unit price is too large")

    status, body = call(views.ledger, setup, {"action": "get-entries", "year": 99999})
    assert (status, body["error"]) == (400, "Invalid year")

    status, body = call(views.ledger, setup, {"action": "get-entries", "year": 2026, "month": 13})
    assert (status, body["error"]) == (400, "Invalid month")

    assert Transaction.objects.count() == 1


@pytest.mark.django_db
def test_unexpected_error_returns_generic_500(setup, monkeypatch):
    def boom(account):
        raise RuntimeError("driver detail")

    monkeypatch.setattr(views.reporting, "dashboard_stats", boom)

    status, body = call(views.dashboard, setup, method="get")

    assert status == 500
    assert body == {"success": False, "error": "Internal server error"}
