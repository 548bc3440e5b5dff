"""Chart-of-accounts maintenance."""
import logging

from django.db import IntegrityError, transaction

from ..exceptions import (CrossEntityReference, DuplicateAccountCode,
                          EntityNotFound, GLAccountInactive,
                          GLAccountNotFound, InvalidInput)
from ..models import Entity, GLAccount, JournalLine
from ..models.account import AC_TYPES, NORMAL_BALANCE
from ..models.journal import DRAFT
from .audit_helper import log_action
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

_TYPES = {value for value, _ in AC_TYPES}
_BALANCES = {value for value, _ in NORMAL_BALANCE}
UPDATABLE_FIELDS = ("name", "description", "parent_id")


def _account_state(account):
    return {
        "code": account.code,
        "name": account.name,
        "accountType": account.account_type,
        "normalBalance": account.normal_balance,
        "parentId": account.parent_id,
        "isActive": account.is_active,
    }


def _load(uow, account_id):
    account = (
        GLAccount.objects.for_tenant(uow.ctx.tenant)
        .select_for_update()
        .filter(pk=account_id)
        .first()
    )
    if account is None:
        raise GLAccountNotFound("GL account not found",
                                details={"glAccountId": account_id})
    return account


def _check_parent(uow, entity_id, parent_id):
    if parent_id is None:
        return None
    parent = GLAccount.objects.for_tenant(uow.ctx.tenant).filter(pk=parent_id).first()
    if parent is None or parent.entity_id != entity_id:
        raise CrossEntityReference(
            "Parent account must belong to the same entity",
            details={"parentId": parent_id, "entityId": entity_id},
        )
    return parent


def create_account(ctx, entity_id, code, name, account_type, normal_balance,
                   parent_id=None, description=""):
    if account_type not in _TYPES:
        raise InvalidInput(f"Unknown account type {account_type}")
    if normal_balance not in _BALANCES:
        raise InvalidInput(f"Unknown normal balance {normal_balance}")

    with unit_of_work(ctx) as uow:
        entity = Entity.objects.for_tenant(ctx.tenant).filter(pk=entity_id).first()
        if entity is None:
            raise EntityNotFound("Entity not found", details={"entityId": entity_id})
        if GLAccount.objects.filter(entity=entity, code=code).exists():
            raise DuplicateAccountCode(
                f"Account code {code} already exists in this entity",
                details={"code": code, "entityId": entity.pk})
        parent = _check_parent(uow, entity.pk, parent_id)

        try:
            with transaction.atomic():
                account = GLAccount.objects.create(
                    entity=entity, code=code, name=name,
                    account_type=account_type, normal_balance=normal_balance,
                    parent=parent, description=description or "",
                )
        except IntegrityError as exc:
            raise DuplicateAccountCode(
                f"Account code {code} already exists in this entity",
                details={"code": code, "entityId": entity.pk}) from exc

        log_action(uow, action="CREATE", model="GLAccount", record_id=account.pk,
                   entity_id=entity.pk, after=_account_state(account))
        return account


def _check_no_cycle(uow, account, parent):
    """Refuse a parent that is the account itself or one of its descendants."""
    ancestors = GLAccount.objects.using(uow.using)
    seen = set()
    node_id = parent.pk
    while node_id is not None and node_id not in seen:
        if node_id == account.pk:
            raise InvalidInput("An account cannot be its own ancestor",
                               details={"glAccountId": account.pk,
                                        "parentId": parent.pk})
        seen.add(node_id)
        node_id = ancestors.filter(pk=node_id).values_list(
            "parent_id", flat=True).first()


def update_account(ctx, account_id, **changes):
    """Rename, re-describe or re-parent an account. Type and normal balance are fixed."""
    if "normal_balance" in changes:
        raise InvalidInput("normal_balance cannot be changed after creation",
                           details={"glAccountId": account_id})
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidInput(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    with unit_of_work(ctx) as uow:
        account = _load(uow, account_id)
        before = _account_state(account)
        if "parent_id" in changes:
            parent = _check_parent(uow, account.entity_id, changes["parent_id"])
            if parent is not None:
                _check_no_cycle(uow, account, parent)
        for name, value in changes.items():
            setattr(account, name, value)
        account.save()
        log_action(uow, action="UPDATE", model="GLAccount", record_id=account.pk,
                   entity_id=account.entity_id, before=before,
                   after=_account_state(account))
        return account


def deactivate_account(ctx, account_id):
    """Blocked while any DRAFT journal line still points at the account."""
    with unit_of_work(ctx) as uow:
        account = _load(uow, account_id)
        draft_lines = JournalLine.objects.filter(
            gl_account=account,
            entry__status=DRAFT,
            entry__deleted_at__isnull=True,
        ).count()
        if draft_lines:
            raise GLAccountInactive(
                f"Cannot deactivate account with {draft_lines} draft journal line(s)",
                details={"glAccountId": account.pk,
                         "draftJournalLineCount": draft_lines},
            )
        account.is_active = False
        account.save(update_fields=["is_active"])
        log_action(uow, action="UPDATE", model="GLAccount", record_id=account.pk,
                   entity_id=account.entity_id, before={"isActive": True},
                   after={"isActive": False})
        logger.info("Deactivated GL account %s (%s)", account.code, account.pk)
        return account


def reactivate_account(ctx, account_id):
    with unit_of_work(ctx) as uow:
        account = _load(uow, account_id)
        account.is_active = True
        account.save(update_fields=["is_active"])
        log_action(uow, action="UPDATE", model="GLAccount", record_id=account.pk,
                   entity_id=account.entity_id, before={"isActive": False},
                   after={"isActive": True})
        return account


def list_accounts(ctx, entity_id, include_inactive=False):
    qs = GLAccount.objects.for_tenant(ctx.tenant).filter(entity_id=entity_id)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return list(qs.order_by("code"))


def account_tree(ctx, entity_id, include_inactive=False):
    """Nested ``{"account": GLAccount, "children": [...]}`` nodes, roots first."""
    accounts = list_accounts(ctx, entity_id, include_inactive)
    nodes = {account.pk: {"account": account, "children": []} for account in accounts}
    roots = []
    for account in accounts:
        node = nodes[account.pk]
        if account.parent_id in nodes:
            nodes[account.parent_id]["children"].append(node)
        else:
            roots.append(node)
    return roots
