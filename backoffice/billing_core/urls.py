from django.urls import path

from . import views

urlpatterns = [
    path("transactions/payments/", views.transaction_payments, name="transaction-payments"),
    path("transactions/", views.transactions, name="transactions"),
    path("ledger/", views.ledger, name="ledger"),
    path("staff/payments/", views.staff_payments, name="staff-payments"),
    path("quick-transactions/", views.quick_transactions, name="quick-transactions"),
    path("quick-staff-payments/", views.quick_staff_payments, name="quick-staff-payments"),
    path("dashboard/", views.dashboard, name="dashboard"),
]
