import random
from decimal import Decimal

from django.test import SimpleTestCase

from ledger_core.exceptions import InvalidInput, UnbalancedEntry
from ledger_core.services import line_builder as lb
from ledger_core.services.fx import to_minor

BANK, AR, AP, REV, REV2, TAX, CAT1, CAT2, CAT3, EQUITY = range(1, 11)


def sides(lines):
    return [(l.gl_account_id, l.debit_amount, l.credit_amount) for l in lines]


class RoundingTests(SimpleTestCase):

    def test_to_minor_rounds_half_up(self):
        self.assertEqual(to_minor(1000, Decimal("1.35")), 1350)
        self.assertEqual(to_minor(1, Decimal("1.5")), 2)
        self.assertEqual(to_minor(333, Decimal("1.333")), 444)
        self.assertEqual(to_minor(999, Decimal("1.333")), 1332)

    def test_to_minor_accepts_float_rates_without_binary_noise(self):
        # the rate goes through str(), so the printed value is what gets multiplied
        self.assertEqual(to_minor(1000, 1.0005), 1001)


class PostingRuleTests(SimpleTestCase):

    """ DR AR total, CR revenue per line, CR tax aggregate """
    def test_invoice_rule(self):
        lines = lb.build_lines(lb.invoice_specs(
            AR, 113000, [(REV, 100000, "Consulting")], TAX, 13000, "Invoice 1"))
        self.assertEqual(sides(lines), [
            (AR, 113000, 0), (REV, 0, 100000), (TAX, 0, 13000)])
        self.assertEqual(lb.check_balance(lines), 113000)

    def test_zero_tax_line_is_dropped(self):
        lines = lb.build_lines(lb.invoice_specs(
            AR, 5000, [(REV, 5000, "")], None, 0))
        self.assertEqual(sides(lines), [(AR, 5000, 0), (REV, 0, 5000)])

    def test_bill_rule(self):
        lines = lb.build_lines(lb.bill_specs(
            AP, 56500, [(CAT1, 50000, "Rent")], TAX, 6500, "Bill 1"))
        self.assertEqual(sides(lines), [
            (CAT1, 50000, 0), (TAX, 6500, 0), (AP, 0, 56500)])

    def test_payment_rules(self):
        self.assertEqual(
            sides(lb.build_lines(lb.ar_payment_specs(BANK, AR, 700))),
            [(BANK, 700, 0), (AR, 0, 700)])
        self.assertEqual(
            sides(lb.build_lines(lb.ap_payment_specs(AP, BANK, 700))),
            [(AP, 700, 0), (BANK, 0, 700)])

    def test_transaction_direction_follows_sign(self):
        outflow = lb.build_lines(lb.transaction_specs(BANK, CAT1, -1000))
        inflow = lb.build_lines(lb.transaction_specs(BANK, CAT1, 1000))
        self.assertEqual(sides(outflow), [(CAT1, 1000, 0), (BANK, 0, 1000)])
        self.assertEqual(sides(inflow), [(BANK, 1000, 0), (CAT1, 0, 1000)])

    def test_opening_balance_side_depends_on_account_nature(self):
        asset = lb.build_lines(lb.opening_balance_specs(BANK, EQUITY, 5000, False))
        card = lb.build_lines(lb.opening_balance_specs(BANK, EQUITY, -5000, True))
        self.assertEqual(sides(asset), [(BANK, 5000, 0), (EQUITY, 0, 5000)])
        self.assertEqual(sides(card), [(EQUITY, 5000, 0), (BANK, 0, 5000)])

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(InvalidInput):
            lb.build_lines([lb.LineSpec(BANK, -5, lb.DEBIT),
                            lb.LineSpec(CAT1, -5, lb.CREDIT)])

    def test_unbalanced_specs_fail(self):
        with self.assertRaises(UnbalancedEntry) as caught:
            lb.build_lines([lb.LineSpec(BANK, 100, lb.DEBIT),
                            lb.LineSpec(CAT1, 90, lb.CREDIT)])
        self.assertEqual(caught.exception.code, "UNBALANCED_ENTRY")
        self.assertEqual(caught.exception.details, {"debits": 100, "credits": 90})


class ForeignCurrencyTests(SimpleTestCase):

    def test_every_line_carries_base_amounts(self):
        lines = lb.build_lines(lb.transaction_specs(BANK, CAT1, -1000),
                               currency="USD", rate=Decimal("1.35"))
        for line in lines:
            self.assertEqual(line.currency, "USD")
            self.assertEqual(line.exchange_rate, Decimal("1.35"))
        self.assertEqual(lines[0].base_currency_debit, 1350)
        self.assertEqual(lines[0].base_currency_credit, 0)
        self.assertEqual(lines[1].base_currency_credit, 1350)

    """ 3 x 333 at 1.333: splits 444 each, bank line exactly round(999 x 1.333) """
    def test_three_way_split_keeps_bank_line_exact(self):
        lines = lb.build_lines(
            lb.split_specs(BANK, [(CAT1, 333, ""), (CAT2, 333, ""), (CAT3, 333, "")], -999),
            currency="USD", rate=Decimal("1.333"))
        self.assertEqual([l.base_currency_debit for l in lines[:3]], [444, 444, 444])
        self.assertEqual(lines[3].gl_account_id, BANK)
        self.assertEqual(lines[3].base_currency_credit, 1332)
        self.assertEqual(sum(l.base_debit for l in lines), sum(l.base_credit for l in lines))

    def test_remainder_lands_on_last_line_of_the_longer_side(self):
        lines = lb.build_lines(
            lb.split_specs(BANK, [(CAT1, 1, ""), (CAT2, 1, ""), (CAT3, 1, "")], -3),
            currency="EUR", rate=Decimal("1.5"))
        # each split rounds 1.5 -> 2 (total 6), the bank line is round(4.5) = 5
        self.assertEqual([l.base_currency_debit for l in lines[:3]], [2, 2, 1])
        self.assertEqual(lines[3].base_currency_credit, 5)

    def test_invoice_receivable_keeps_rounded_total(self):
        lines = lb.build_lines(
            lb.invoice_specs(AR, 1000, [(REV, 500, ""), (REV2, 500, "")], None, 0),
            currency="EUR", rate=Decimal("1.001"))
        self.assertEqual(lines[0].base_currency_debit, 1001)
        self.assertEqual([l.base_currency_credit for l in lines[1:]], [501, 500])

    def test_tie_puts_remainder_on_final_line(self):
        specs = [lb.LineSpec(CAT1, 1, lb.DEBIT), lb.LineSpec(CAT2, 3, lb.DEBIT),
                 lb.LineSpec(CAT3, 2, lb.CREDIT), lb.LineSpec(BANK, 2, lb.CREDIT)]
        lines = lb.build_lines(specs, currency="EUR", rate=Decimal("1.5"))
        # debits 2 + 5 = 7, credits 3 + 3 = 6
        self.assertEqual(lines[-1].base_currency_credit, 4)
        self.assertEqual(lines[0].base_currency_debit, 2)

    def test_remainder_larger_than_last_line_moves_to_earlier_lines(self):
        lines = lb.build_lines(
            lb.split_specs(BANK, [(CAT1, 1, ""), (CAT2, 1, ""), (CAT3, 1, ""), (REV, 1, "")], -4),
            currency="USD", rate=Decimal("0.5"))
        # four splits round 0.5 -> 1 each, the bank line is round(2) = 2
        self.assertEqual([l.base_currency_debit for l in lines[:4]], [1, 1, 0, 0])
        self.assertEqual(lines[4].base_currency_credit, 2)


class RandomizedBalanceTests(SimpleTestCase):
    """Balance must hold for any amounts, line counts and rates."""

    ROUNDS = 300

    def setUp(self):
        self.rng = random.Random(20250314)

    def _rate(self):
        return Decimal(self.rng.randint(1, 500000)) / Decimal(100000)

    def _amounts(self, low=1, high=250000):
        return [self.rng.randint(low, high) for _ in range(self.rng.randint(1, 8))]

    def assertBalanced(self, lines, aggregate, total, rate):
        self.assertEqual(sum(l.debit_amount for l in lines),
                         sum(l.credit_amount for l in lines))
        self.assertEqual(sum(l.base_debit for l in lines),
                         sum(l.base_credit for l in lines))
        for line in lines:
            self.assertGreaterEqual(line.base_currency_debit, 0)
            self.assertGreaterEqual(line.base_currency_credit, 0)
        self.assertEqual(aggregate.base_debit + aggregate.base_credit,
                         to_minor(total, rate))

    def test_splits(self):
        for i in range(self.ROUNDS):
            amounts = self._amounts()
            rate = self._rate()
            signed = sum(amounts) * self.rng.choice([1, -1])
            with self.subTest(i=i, amounts=amounts, rate=rate, signed=signed):
                splits = [(CAT1 + n % 3, amount, "") for n, amount in enumerate(amounts)]
                lines = lb.build_lines(lb.split_specs(BANK, splits, signed),
                                       currency="USD", rate=rate)
                self.assertEqual(lines[-1].gl_account_id, BANK)
                self.assertBalanced(lines, lines[-1], abs(signed), rate)

    def test_invoices(self):
        for i in range(self.ROUNDS):
            amounts = self._amounts()
            tax = self.rng.choice([0, self.rng.randint(1, 40000)])
            rate = self._rate()
            total = sum(amounts) + tax
            with self.subTest(i=i, amounts=amounts, tax=tax, rate=rate):
                lines = lb.build_lines(
                    lb.invoice_specs(AR, total, [(REV, a, "") for a in amounts], TAX, tax),
                    currency="EUR", rate=rate)
                self.assertEqual(lines[0].gl_account_id, AR)
                self.assertBalanced(lines, lines[0], total, rate)

    def test_bills(self):
        for i in range(self.ROUNDS):
            amounts = self._amounts()
            tax = self.rng.choice([0, self.rng.randint(1, 40000)])
            rate = self._rate()
            total = sum(amounts) + tax
            with self.subTest(i=i, amounts=amounts, tax=tax, rate=rate):
                lines = lb.build_lines(
                    lb.bill_specs(AP, total, [(CAT1, a, "") for a in amounts], TAX, tax),
                    currency="GBP", rate=rate)
                self.assertEqual(lines[-1].gl_account_id, AP)
                self.assertBalanced(lines, lines[-1], total, rate)


class ReverseLinesTests(SimpleTestCase):

    def test_swaps_amounts_and_base_mirrors(self):
        lines = lb.build_lines(lb.transaction_specs(BANK, CAT1, -1000),
                               currency="USD", rate=Decimal("1.35"))
        reversed_lines = lb.reverse_lines(lines)
        self.assertEqual(sides(reversed_lines), [(CAT1, 0, 1000), (BANK, 1000, 0)])
        self.assertEqual(reversed_lines[0].base_currency_credit, 1350)
        self.assertEqual(reversed_lines[1].base_currency_debit, 1350)
        self.assertEqual(reversed_lines[0].exchange_rate, Decimal("1.35"))
