"""Chart-of-accounts lookups by well-known code."""
from ..conf import ledger_settings
from ..exceptions import CrossEntityReference, GLAccountNotFound
from ..models import GLAccount


def resolve_by_code(uow, entity_id, code):
    """Active account with exactly ``code`` in the entity."""
    uow.require_active()
    account = (
        GLAccount.objects.using(uow.using)
        .filter(entity_id=entity_id, code=code, is_active=True)
        .first()
    )
    if account is None:
        raise GLAccountNotFound(
            f"GL account {code} not found for entity. "
            "Seed the chart of accounts first.",
            details={"entityId": entity_id, "code": code},
        )
    return account


def resolve_well_known(uow, entity_id, keys, gl_codes=None):
    """
    Resolve several ``WellKnownAccount`` targets with one query.

    Returns ``{key: GLAccount}``; any missing or inactive code fails with
    GL_ACCOUNT_NOT_FOUND.
    """
    uow.require_active()
    codes = ledger_settings.gl_codes(gl_codes)
    wanted = {key: codes[key] for key in keys}
    found = {
        account.code: account
        for account in GLAccount.objects.using(uow.using).filter(
            entity_id=entity_id, code__in=set(wanted.values()), is_active=True
        )
    }
    resolved = {}
    for key, code in wanted.items():
        if code not in found:
            raise GLAccountNotFound(
                f"GL account {code} ({key.value}) not found for entity. "
                "Seed the chart of accounts first.",
                details={"entityId": entity_id, "code": code},
            )
        resolved[key] = found[code]
    return resolved


def resolve_entity_accounts(uow, entity_id, account_ids):
    """
    Load accounts referenced by id and require that every one is active and
    belongs to ``entity_id``.
    """
    uow.require_active()
    wanted = {int(pk) for pk in account_ids if pk is not None}
    if not wanted:
        return {}
    accounts = {
        account.pk: account
        for account in GLAccount.objects.using(uow.using).filter(
            pk__in=wanted, entity_id=entity_id, is_active=True)
    }
    missing = sorted(wanted - set(accounts))
    if missing:
        raise CrossEntityReference(
            "One or more GL accounts do not belong to this entity or are inactive",
            details={"glAccountIds": missing, "entityId": entity_id},
        )
    return accounts
