from .lifecycle import (create_transaction, delete_transaction,
                        filter_transactions, get_transaction,
                        update_transaction)
from .payment import (delete_payment, get_payment_summary, get_payments,
                      record_payment, update_payment)
from .staff_payment import (delete_staff_payment, get_staff_payments,
                            get_staff_total_paid, record_staff_payment,
                            staff_payment_stats, update_staff_payment)
from .templates import (execute_staff_payment_template,
                        execute_transaction_template)

__all__ = [
    "create_transaction",
    "update_transaction",
    "delete_transaction",
    "get_transaction",
    "filter_transactions",
    "record_payment",
    "update_payment",
    "delete_payment",
    "get_payments",
    "get_payment_summary",
    "record_staff_payment",
    "update_staff_payment",
    "delete_staff_payment",
    "get_staff_payments",
    "get_staff_total_paid",
    "staff_payment_stats",
    "execute_transaction_template",
    "execute_staff_payment_template",
]
