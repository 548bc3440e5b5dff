import re

from ..conf import ledger_settings
from ..models import Entity, JournalEntry

_SUFFIX = re.compile(r"(\d+)$")


def format_entry_number(number):
    padding = ledger_settings.ENTRY_NUMBER_PADDING
    return f"{ledger_settings.ENTRY_NUMBER_PREFIX}{number:0{padding}d}"


def next_entry_number(uow, entity_id):
    """
    Next entry number for the entity, e.g. ``JE-007``.

    Must run in the transaction that inserts the entry. The entity row is
    locked first so concurrent sequencers for one entity queue up. The
    latest entry is found by creation time, not by number.
    """
    uow.require_active()
    Entity.objects.using(uow.using).select_for_update().filter(
        pk=entity_id).first()

    entries = JournalEntry.objects.using(uow.using).filter(entity_id=entity_id)
    last = entries.order_by("-created_at", "-pk").values_list(
        "entry_number", flat=True).first()

    number = 1
    if last:
        match = _SUFFIX.search(last)
        if match:
            number = int(match.group(1)) + 1

    candidate = format_entry_number(number)
    # historical renumbering can leave a higher number behind; skip over it
    while entries.filter(entry_number=candidate).exists():
        number += 1
        candidate = format_entry_number(number)
    return candidate
