from .accounts import (account_tree, create_account, deactivate_account,
                       list_accounts, reactivate_account, update_account)
from .coa import DEFAULT_CHART, seed_default_chart
from .documents import (apply_bill_payment, apply_invoice_payment,
                        approve_bill, cancel_bill, cancel_invoice,
                        mark_bill_overdue, mark_invoice_overdue,
                        reverse_bill_payment, reverse_invoice_payment,
                        send_invoice)
from .journal import (approve_entry, create_entry, delete_entry, get_entry,
                      list_entries, void_entry)
from .ledger_writer import PostingResult
from .periods import (assert_period_open, close_period, create_calendar,
                      find_period, list_periods, lock_period, reopen_period)
from .posting import (OpeningBalance, post_bill, post_invoice,
                      post_opening_balance, post_payment_allocation)
from .transactions import (post_bulk_transactions, post_split_transaction,
                           post_transaction)
from .unit_of_work import LedgerContext, unit_of_work
