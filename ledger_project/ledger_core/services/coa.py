"""Default chart of accounts for a new entity."""
import logging

from ..exceptions import EntityNotFound
from ..models import Entity, GLAccount
from ..models.account import (ASSET, CREDIT, DEBIT, EQUITY, EXPENSE, INCOME,
                              LIABILITY)
from .audit_helper import log_action
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

# (code, name, account_type, normal_balance, parent_code)
DEFAULT_CHART = [
    # Assets
    ("1000", "Cash", ASSET, DEBIT, None),
    ("1010", "Petty Cash", ASSET, DEBIT, "1000"),
    ("1100", "Bank Account", ASSET, DEBIT, None),
    ("1200", "Accounts Receivable", ASSET, DEBIT, None),
    ("1300", "Inventory", ASSET, DEBIT, None),
    ("1400", "Prepaid Expenses", ASSET, DEBIT, None),
    # Liabilities
    ("2000", "Accounts Payable", LIABILITY, CREDIT, None),
    ("2100", "Credit Card Payable", LIABILITY, CREDIT, None),
    ("2200", "Accrued Liabilities", LIABILITY, CREDIT, None),
    ("2300", "Sales Tax Payable", LIABILITY, CREDIT, None),
    ("2400", "Income Tax Payable", LIABILITY, CREDIT, None),
    ("2500", "Loans Payable", LIABILITY, CREDIT, None),
    # Equity
    ("3000", "Owner's Equity", EQUITY, CREDIT, None),
    ("3100", "Retained Earnings", EQUITY, CREDIT, None),
    ("3200", "Owner's Draws", EQUITY, DEBIT, None),
    ("3300", "Opening Balance Equity", EQUITY, CREDIT, None),
    # Income
    ("4000", "Service Revenue", INCOME, CREDIT, None),
    ("4100", "Product Sales", INCOME, CREDIT, None),
    ("4200", "Interest Income", INCOME, CREDIT, None),
    ("4300", "Other Income", INCOME, CREDIT, None),
    # Expenses
    ("5000", "Cost of Goods Sold", EXPENSE, DEBIT, None),
    ("5100", "Advertising & Marketing", EXPENSE, DEBIT, None),
    ("5200", "Bank Fees & Interest", EXPENSE, DEBIT, None),
    ("5300", "Insurance", EXPENSE, DEBIT, None),
    ("5400", "Office Supplies", EXPENSE, DEBIT, None),
    ("5500", "Professional Fees", EXPENSE, DEBIT, None),
    ("5600", "Rent & Utilities", EXPENSE, DEBIT, None),
    ("5700", "Salaries & Wages", EXPENSE, DEBIT, None),
    ("5800", "Travel & Meals", EXPENSE, DEBIT, None),
    ("5900", "Depreciation", EXPENSE, DEBIT, None),
    ("5990", "Other Expenses", EXPENSE, DEBIT, None),
]


def seed_default_chart(ctx, entity_id):
    """
    Create the default chart for an entity that has no accounts yet.

    Returns ``{"seeded": bool, "accountCount": int}``; an entity that
    already has accounts is left alone.
    """
    with unit_of_work(ctx) as uow:
        entity = (
            Entity.objects.for_tenant(ctx.tenant)
            .select_for_update()
            .filter(pk=entity_id)
            .first()
        )
        if entity is None:
            raise EntityNotFound("Entity not found", details={"entityId": entity_id})

        existing = GLAccount.objects.filter(entity=entity).count()
        if existing:
            return {"seeded": False, "accountCount": existing}

        by_code = {}
        for code, name, account_type, normal_balance, parent_code in DEFAULT_CHART:
            by_code[code] = GLAccount.objects.create(
                entity=entity,
                code=code,
                name=name,
                account_type=account_type,
                normal_balance=normal_balance,
                parent=by_code.get(parent_code),
            )

        log_action(uow, action="CREATE", model="GLAccount", record_id="seed",
                   entity_id=entity.pk,
                   after={"operation": "seed_default_chart",
                          "accountCount": len(DEFAULT_CHART)})
        logger.info("Seeded %d GL accounts for entity %s",
                    len(DEFAULT_CHART), entity.pk)
        return {"seeded": True, "accountCount": len(DEFAULT_CHART)}
