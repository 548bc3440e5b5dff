"""
Pure journal-line construction. No database access.

Posting rules describe a document as ``LineSpec`` tuples (account, amount,
direction); ``build_lines`` turns them into balanced ``BuiltLine`` rows,
adding functional-currency mirrors when a rate is given.
"""
from dataclasses import asdict, dataclass, replace
from typing import List, Optional, Sequence

from ..exceptions import InvalidInput, UnbalancedEntry
from .fx import to_minor

DEBIT = "DEBIT"
CREDIT = "CREDIT"


@dataclass(frozen=True)
class LineSpec:
    gl_account_id: int
    amount: int
    direction: str
    memo: str = ""


@dataclass(frozen=True)
class BuiltLine:
    gl_account_id: int
    debit_amount: int
    credit_amount: int
    memo: str = ""
    currency: Optional[str] = None
    exchange_rate: Optional[object] = None
    base_currency_debit: Optional[int] = None
    base_currency_credit: Optional[int] = None

    @property
    def is_debit(self):
        return self.debit_amount > 0

    @property
    def amount(self):
        return self.debit_amount or self.credit_amount

    @property
    def base_debit(self):
        return self.debit_amount if self.base_currency_debit is None else self.base_currency_debit

    @property
    def base_credit(self):
        return self.credit_amount if self.base_currency_credit is None else self.base_currency_credit

    def as_dict(self):
        data = asdict(self)
        if data["exchange_rate"] is not None:
            data["exchange_rate"] = str(data["exchange_rate"])
        return data


def _line(spec):
    if spec.direction == DEBIT:
        return BuiltLine(spec.gl_account_id, spec.amount, 0, spec.memo)
    if spec.direction == CREDIT:
        return BuiltLine(spec.gl_account_id, 0, spec.amount, spec.memo)
    raise InvalidInput(f"Unknown line direction {spec.direction!r}")


def _with_base(line, currency, rate):
    base = to_minor(line.amount, rate)
    return replace(
        line,
        currency=currency,
        exchange_rate=rate,
        base_currency_debit=base if line.is_debit else 0,
        base_currency_credit=0 if line.is_debit else base,
    )


def _absorb_remainder(lines):
    """
    Force base debits to equal base credits.

    The side with more lines takes the remainder on its last line, so a
    single aggregate line (AR total, AP total, the bank side of a split)
    keeps exactly round(total * rate). On a tie the final line's side takes
    it. A line is never pushed below zero; what it cannot take moves on to
    the previous line of the same side.
    """
    debit_idx = [i for i, line in enumerate(lines) if line.is_debit]
    credit_idx = [i for i, line in enumerate(lines) if not line.is_debit]
    base_debits = sum(lines[i].base_currency_debit for i in debit_idx)
    base_credits = sum(lines[i].base_currency_credit for i in credit_idx)
    diff = base_debits - base_credits
    if diff == 0:
        return lines

    if len(debit_idx) > len(credit_idx):
        side = debit_idx
    elif len(credit_idx) > len(debit_idx):
        side = credit_idx
    else:
        side = debit_idx if lines[-1].is_debit else credit_idx

    field = "base_currency_debit" if lines[side[-1]].is_debit else "base_currency_credit"
    # positive: the side must grow, negative: it must shrink
    change = -diff if field == "base_currency_debit" else diff
    lines = list(lines)
    for i in reversed(side):
        current = getattr(lines[i], field)
        step = change if change > 0 else max(change, -current)
        lines[i] = replace(lines[i], **{field: current + step})
        change -= step
        if change == 0:
            break
    return lines


def check_balance(lines):
    """Re-sum debits/credits (and base mirrors) and fail if they differ."""
    debits = sum(line.debit_amount for line in lines)
    credits = sum(line.credit_amount for line in lines)
    if debits != credits:
        raise UnbalancedEntry(
            f"Journal entry is unbalanced: debits={debits}, credits={credits}",
            details={"debits": debits, "credits": credits},
        )
    base_debits = sum(line.base_debit for line in lines)
    base_credits = sum(line.base_credit for line in lines)
    if base_debits != base_credits:
        raise UnbalancedEntry(
            "Journal entry is unbalanced in base currency: "
            f"debits={base_debits}, credits={base_credits}",
            details={"baseDebits": base_debits, "baseCredits": base_credits},
        )
    return debits


def build_lines(specs: Sequence[LineSpec], currency=None, rate=None) -> List[BuiltLine]:
    """
    Zero-amount specs are dropped. With ``rate`` every line carries
    ``round(amount * rate)`` in the base-currency columns.
    """
    for spec in specs:
        if spec.amount < 0:
            raise InvalidInput("Line amounts must not be negative",
                               details={"glAccountId": spec.gl_account_id,
                                        "amount": spec.amount})
    lines = [_line(spec) for spec in specs if spec.amount != 0]
    if rate is not None:
        lines = _absorb_remainder([_with_base(line, currency, rate) for line in lines])
    check_balance(lines)
    return lines


def reverse_lines(lines):
    """Exact debit/credit swap, base mirrors included."""
    return [
        replace(
            line,
            debit_amount=line.credit_amount,
            credit_amount=line.debit_amount,
            base_currency_debit=line.base_currency_credit,
            base_currency_credit=line.base_currency_debit,
        )
        for line in lines
    ]


# ---------- posting rules per document type ----------

def invoice_specs(ar_id, total, revenue_lines, tax_id, tax_total, memo=""):
    """DR receivable for the total, CR revenue per line, CR tax in aggregate."""
    specs = [LineSpec(ar_id, total, DEBIT, memo)]
    specs += [LineSpec(gl_id, amount, CREDIT, line_memo)
              for gl_id, amount, line_memo in revenue_lines]
    specs.append(LineSpec(tax_id, tax_total, CREDIT, "Sales tax"))
    return specs


def bill_specs(ap_id, total, expense_lines, tax_id, tax_total, memo=""):
    """DR expense per line, DR recoverable tax, CR payable for the total."""
    specs = [LineSpec(gl_id, amount, DEBIT, line_memo)
             for gl_id, amount, line_memo in expense_lines]
    specs.append(LineSpec(tax_id, tax_total, DEBIT, "Recoverable tax"))
    specs.append(LineSpec(ap_id, total, CREDIT, memo))
    return specs


def ar_payment_specs(bank_id, ar_id, amount, memo=""):
    return [LineSpec(bank_id, amount, DEBIT, memo),
            LineSpec(ar_id, amount, CREDIT, memo)]


def ap_payment_specs(ap_id, bank_id, amount, memo=""):
    return [LineSpec(ap_id, amount, DEBIT, memo),
            LineSpec(bank_id, amount, CREDIT, memo)]


def transaction_specs(bank_id, target_id, signed_amount, memo=""):
    """Inflow: DR bank, CR target. Outflow: DR target, CR bank."""
    amount = abs(signed_amount)
    if signed_amount > 0:
        return [LineSpec(bank_id, amount, DEBIT, memo),
                LineSpec(target_id, amount, CREDIT, memo)]
    return [LineSpec(target_id, amount, DEBIT, memo),
            LineSpec(bank_id, amount, CREDIT, memo)]


def split_specs(bank_id, splits, signed_amount, memo=""):
    """
    One line per split category plus one aggregate bank line for the whole
    transaction amount. ``splits`` holds (gl_account_id, amount, memo).
    """
    inflow = signed_amount > 0
    split_direction = CREDIT if inflow else DEBIT
    bank_direction = DEBIT if inflow else CREDIT
    specs = [LineSpec(gl_id, amount, split_direction, split_memo or memo)
             for gl_id, amount, split_memo in splits]
    specs.append(LineSpec(bank_id, abs(signed_amount), bank_direction, memo))
    return specs


def opening_balance_specs(gl_id, equity_id, amount, credit_normal, memo=""):
    """
    Credit-normal accounts (cards, loans, mortgages) carry the balance on
    the credit side against opening-balance equity, others on the debit side.
    """
    amount = abs(amount)
    if credit_normal:
        return [LineSpec(equity_id, amount, DEBIT, memo),
                LineSpec(gl_id, amount, CREDIT, memo)]
    return [LineSpec(gl_id, amount, DEBIT, memo),
            LineSpec(equity_id, amount, CREDIT, memo)]
