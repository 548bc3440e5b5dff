import datetime

from django.test import TestCase, override_settings

from ledger_core.models import Entity, JournalEntry
from ledger_core.services import unit_of_work
from ledger_core.services.sequencer import format_entry_number, next_entry_number

from .factories import make_tenant


class SequencerTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()

    def _entry(self, number, entity=None):
        return JournalEntry.objects.create(
            entity=entity or self.entity, entry_number=number,
            date=datetime.date(2025, 1, 1))

    def _next(self, entity=None):
        with unit_of_work(self.ctx) as uow:
            return next_entry_number(uow, (entity or self.entity).pk)

    def test_first_number(self):
        self.assertEqual(self._next(), "JE-001")

    def test_padding_grows_past_width(self):
        self.assertEqual(format_entry_number(7), "JE-007")
        self.assertEqual(format_entry_number(1234), "JE-1234")

    @override_settings(LEDGER={"ENTRY_NUMBER_PREFIX": "GJ-", "ENTRY_NUMBER_PADDING": 5})
    def test_prefix_and_padding_are_configurable(self):
        self.assertEqual(self._next(), "GJ-00001")

    # newest entry by creation time, not the highest number
    def test_follows_most_recently_created(self):
        self._entry("JE-050")
        self._entry("JE-007")
        self.assertEqual(self._next(), "JE-008")

    def test_skips_numbers_already_taken(self):
        self._entry("JE-005")
        self._entry("JE-004")
        self.assertEqual(self._next(), "JE-006")

    def test_entities_are_independent(self):
        sibling = Entity.objects.create(tenant=self.tenant, name="Sibling")
        self._entry("JE-003")
        self.assertEqual(self._next(sibling), "JE-001")
