from .account import GLAccount
from .auditlog import AuditLog
from .banking import BankAccount, BankTransaction, TransactionSplit
from .bill import Bill, BillLine
from .currency import FXRate
from .customer import Customer
from .entitymembership import Entity, Membership, Tenant, User
from .invoice import Invoice, InvoiceLine
from .journal import JournalEntry, JournalLine
from .payment import Payment, PaymentAllocation
from .period import FiscalCalendar, FiscalPeriod
from .vendor import Vendor
