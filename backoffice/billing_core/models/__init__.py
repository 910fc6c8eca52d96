from .auditlog import AuditLog
from .directory import Client, Product, Staff, StaffPayment
from .entitymembership import Account, AccountMembership
from .ledger import LedgerEntry
from .template import QuickStaffPaymentTemplate, QuickTransactionTemplate
from .transaction import Transaction, TransactionItem, TransactionPayment
