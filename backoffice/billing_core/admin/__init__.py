from .directory import ClientAdmin, ProductAdmin, StaffAdmin, StaffPaymentAdmin
from .ledger import AuditLogAdmin, LedgerEntryAdmin
from .membership import AccountAdmin, AccountMembershipAdmin
from .mixins import TenantAdminMixin
from .readonly import ReadOnlyAdmin
from .template import (QuickStaffPaymentTemplateAdmin,
                       QuickTransactionTemplateAdmin)
from .transaction import TransactionAdmin
