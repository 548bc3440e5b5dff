import datetime
from decimal import Decimal

from django.test import TestCase

from ledger_core.exceptions import (AlreadyPosted, BankAccountNotMapped,
                                    CrossEntityReference, GLAccountInactive,
                                    GLAccountNotFound, InvalidInput,
                                    RecordNotFound, SplitAmountMismatch)
from ledger_core.models import (AuditLog, BankTransaction, Entity,
                                JournalEntry, JournalLine, TransactionSplit)
from ledger_core.services import (post_bulk_transactions,
                                  post_split_transaction, post_transaction,
                                  seed_default_chart, void_entry)

from .factories import (account, make_bank_account, make_rate, make_tenant,
                        make_transaction)

FRIDAY = datetime.date(2025, 3, 14)
SATURDAY = datetime.date(2025, 3, 15)


def base_lines(entry_id):
    return [
        (line.gl_account.code, line.base_currency_debit, line.base_currency_credit)
        for line in JournalLine.objects.filter(entry_id=entry_id)
        .select_related("gl_account").order_by("position")
    ]


class ForeignTransactionTests(TestCase):

    """ USD outflow into a CAD entity, weekend date uses Friday's rate """
    def test_weekend_transaction_uses_latest_prior_rate(self):
        _, entity, ctx = make_tenant("north", functional_currency="CAD")
        make_rate("USD", "CAD", FRIDAY - datetime.timedelta(days=1), "1.30")
        make_rate("USD", "CAD", FRIDAY, "1.35")
        make_rate("USD", "CAD", SATURDAY + datetime.timedelta(days=2), "1.40")
        bank = make_bank_account(entity, currency="USD")
        txn = make_transaction(bank, -1000, date=SATURDAY)

        result = post_transaction(ctx, txn.pk, account(entity, "5200").pk)

        self.assertEqual(base_lines(result.journal_entry_id), [
            ("5200", 1350, 0), ("1100", 0, 1350)])
        line = JournalLine.objects.filter(entry_id=result.journal_entry_id).first()
        self.assertEqual(line.exchange_rate, Decimal("1.35"))
        self.assertEqual(line.currency, "USD")

    """ -999 split 333/333/333 at 1.333 """
    def test_three_way_split(self):
        _, entity, ctx = make_tenant("north", functional_currency="CAD")
        bank = make_bank_account(entity, currency="USD")
        txn = make_transaction(bank, -999)
        splits = [
            {"gl_account_id": account(entity, code).pk, "amount": 333, "memo": code}
            for code in ("5400", "5500", "5600")
        ]

        result = post_split_transaction(ctx, txn.pk, splits, manual_rate="1.333")

        self.assertEqual(base_lines(result.journal_entry_id), [
            ("5400", 444, 0), ("5500", 444, 0), ("5600", 444, 0), ("1100", 0, 1332)])
        self.assertEqual(
            list(TransactionSplit.objects.filter(transaction=txn)
                 .values_list("gl_account__code", "amount")),
            [("5400", 333), ("5500", 333), ("5600", 333)])


class TransactionPostingTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()
        self.bank = make_bank_account(self.entity)
        self.fees = account(self.entity, "5200")

    def test_outflow_debits_category(self):
        txn = make_transaction(self.bank, -2500)
        result = post_transaction(self.ctx, txn.pk, self.fees.pk)
        lines = JournalLine.objects.filter(entry_id=result.journal_entry_id).order_by("position")
        self.assertEqual([(l.gl_account_id, l.debit_amount, l.credit_amount) for l in lines], [
            (self.fees.pk, 2500, 0), (self.bank.gl_account_id, 0, 2500)])
        self.assertIsNone(lines[0].currency)
        txn.refresh_from_db()
        self.assertEqual(txn.journal_entry_id, result.journal_entry_id)

    def test_inflow_credits_category(self):
        txn = make_transaction(self.bank, 4000)
        income = account(self.entity, "4300")
        result = post_transaction(self.ctx, txn.pk, income.pk)
        self.assertEqual(result.lines[0].gl_account_id, self.bank.gl_account_id)
        self.assertEqual(result.lines[1].credit_amount, 4000)

    def test_already_posted(self):
        txn = make_transaction(self.bank, -100)
        first = post_transaction(self.ctx, txn.pk, self.fees.pk)
        with self.assertRaises(AlreadyPosted) as caught:
            post_transaction(self.ctx, txn.pk, self.fees.pk)
        self.assertEqual(caught.exception.details["journalEntryId"], first.journal_entry_id)

    def test_void_frees_transaction_for_reposting(self):
        txn = make_transaction(self.bank, -100)
        first = post_transaction(self.ctx, txn.pk, self.fees.pk)
        void_entry(self.ctx, first.journal_entry_id)
        txn.refresh_from_db()
        self.assertIsNone(txn.journal_entry_id)

        again = post_transaction(self.ctx, txn.pk, account(self.entity, "5400").pk)
        self.assertNotEqual(again.journal_entry_id, first.journal_entry_id)

    def test_unmapped_bank_account(self):
        unmapped = make_bank_account(self.entity, name="Savings", mapped=False)
        txn = make_transaction(unmapped, -100)
        with self.assertRaises(BankAccountNotMapped):
            post_transaction(self.ctx, txn.pk, self.fees.pk)

    def test_inactive_target(self):
        self.fees.is_active = False
        self.fees.save()
        txn = make_transaction(self.bank, -100)
        with self.assertRaises(GLAccountInactive):
            post_transaction(self.ctx, txn.pk, self.fees.pk)

    def test_target_in_another_entity(self):
        _, other, _ = make_tenant("other")
        txn = make_transaction(self.bank, -100)
        with self.assertRaises(GLAccountNotFound):
            post_transaction(self.ctx, txn.pk, account(other, "5200").pk)
        self.assertFalse(JournalEntry.objects.exists())

    def test_target_in_sibling_entity_of_same_tenant(self):
        sibling = Entity.objects.create(tenant=self.tenant, name="Sibling")
        seed_default_chart(self.ctx, sibling.pk)
        txn = make_transaction(self.bank, -100)
        with self.assertRaises(CrossEntityReference):
            post_transaction(self.ctx, txn.pk, account(sibling, "5200").pk)

    def test_zero_amount(self):
        txn = make_transaction(self.bank, 0)
        with self.assertRaises(InvalidInput):
            post_transaction(self.ctx, txn.pk, self.fees.pk)

    def test_other_tenant_cannot_see_transaction(self):
        _, _, other_ctx = make_tenant("other")
        txn = make_transaction(self.bank, -100)
        with self.assertRaises(RecordNotFound):
            post_transaction(other_ctx, txn.pk, self.fees.pk)


class SplitTransactionTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()
        self.bank = make_bank_account(self.entity)

    def test_inflow_split(self):
        txn = make_transaction(self.bank, 1000)
        splits = [
            {"gl_account_id": account(self.entity, "4000").pk, "amount": 700},
            {"gl_account_id": account(self.entity, "4200").pk, "amount": 300},
        ]
        result = post_split_transaction(self.ctx, txn.pk, splits)
        self.assertEqual(
            [(l.debit_amount, l.credit_amount) for l in result.lines],
            [(0, 700), (0, 300), (1000, 0)])

    def test_splits_must_add_up(self):
        txn = make_transaction(self.bank, -1000)
        splits = [{"gl_account_id": account(self.entity, "5400").pk, "amount": 900}]
        with self.assertRaises(SplitAmountMismatch) as caught:
            post_split_transaction(self.ctx, txn.pk, splits)
        self.assertEqual(caught.exception.details,
                         {"splitTotal": 900, "transactionAmount": 1000})

    def test_split_amounts_must_be_positive(self):
        txn = make_transaction(self.bank, -1000)
        splits = [
            {"gl_account_id": account(self.entity, "5400").pk, "amount": 1100},
            {"gl_account_id": account(self.entity, "5500").pk, "amount": -100},
        ]
        with self.assertRaises(InvalidInput):
            post_split_transaction(self.ctx, txn.pk, splits)

    def test_existing_split_rows_get_their_accounts(self):
        txn = make_transaction(self.bank, -1000)
        TransactionSplit.objects.create(transaction=txn, amount=600, memo="a")
        TransactionSplit.objects.create(transaction=txn, amount=400, memo="b")
        office, fees = account(self.entity, "5400"), account(self.entity, "5500")
        post_split_transaction(self.ctx, txn.pk, [
            {"gl_account_id": office.pk, "amount": 600},
            {"gl_account_id": fees.pk, "amount": 400},
        ])
        self.assertEqual(
            list(txn.splits.order_by("id").values_list("gl_account_id", flat=True)),
            [office.pk, fees.pk])

    def test_splits_must_match_stored_rows(self):
        txn = make_transaction(self.bank, -1000)
        TransactionSplit.objects.create(transaction=txn, amount=600, memo="a")
        TransactionSplit.objects.create(transaction=txn, amount=400, memo="b")
        office, fees = account(self.entity, "5400"), account(self.entity, "5500")
        with self.assertRaises(SplitAmountMismatch) as caught:
            post_split_transaction(self.ctx, txn.pk, [
                {"gl_account_id": office.pk, "amount": 500},
                {"gl_account_id": fees.pk, "amount": 500},
            ])
        self.assertEqual(caught.exception.details["storedAmounts"], [600, 400])
        self.assertFalse(JournalEntry.objects.filter(source_id=str(txn.pk)).exists())
        self.assertFalse(txn.splits.filter(gl_account__isnull=False).exists())


class BulkPostingTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()
        self.bank = make_bank_account(self.entity)
        self.fees = account(self.entity, "5200")

    def test_posts_every_transaction(self):
        txns = [make_transaction(self.bank, amount) for amount in (-100, -200, 300)]

        result = post_bulk_transactions(self.ctx, [t.pk for t in txns], self.fees.pk)

        self.assertEqual(result["posted"], 3)
        self.assertEqual([e["entryNumber"] for e in result["entries"]],
                         ["JE-001", "JE-002", "JE-003"])
        self.assertFalse(BankTransaction.objects.filter(journal_entry__isnull=True).exists())
        self.assertTrue(AuditLog.objects.filter(record_id="batch").exists())

    def test_missing_ids_abort_everything(self):
        txn = make_transaction(self.bank, -100)
        with self.assertRaises(GLAccountNotFound) as caught:
            post_bulk_transactions(self.ctx, [txn.pk, 987654], self.fees.pk)
        self.assertEqual(caught.exception.status_code, 400)
        self.assertEqual(caught.exception.details["missingIds"], [987654])
        self.assertFalse(JournalEntry.objects.exists())

    def test_failure_midway_rolls_back_earlier_postings(self):
        good = make_transaction(self.bank, -100)
        zero = make_transaction(self.bank, 0)
        with self.assertRaises(InvalidInput):
            post_bulk_transactions(self.ctx, [good.pk, zero.pk], self.fees.pk)
        self.assertFalse(JournalEntry.objects.exists())
        good.refresh_from_db()
        self.assertIsNone(good.journal_entry_id)
