import datetime

from django.core.exceptions import ValidationError
from django.test import TestCase

from ledger_core.exceptions import FiscalPeriodError
from ledger_core.models import AuditLog, FiscalPeriod
from ledger_core.models.period import CLOSED, LOCKED, OPEN
from ledger_core.services import (close_period, create_calendar, list_periods,
                                  lock_period, reopen_period)

from .factories import make_tenant


class FiscalCalendarTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()

    def test_twelve_monthly_periods(self):
        calendar = create_calendar(self.ctx, self.entity.pk, 2025)
        periods = list_periods(self.ctx, self.entity.pk)
        self.assertEqual(len(periods), 12)
        self.assertEqual(periods[0].name, "January 2025")
        self.assertEqual(periods[1].end_date, datetime.date(2025, 2, 28))
        self.assertEqual(calendar.end_date, datetime.date(2025, 12, 31))
        self.assertTrue(all(p.status == OPEN for p in periods))

    def test_fiscal_year_starting_in_july(self):
        calendar = create_calendar(self.ctx, self.entity.pk, 2025, start_month=7)
        periods = list_periods(self.ctx, self.entity.pk)
        self.assertEqual(periods[0].name, "July 2025")
        self.assertEqual(periods[-1].name, "June 2026")
        self.assertEqual(calendar.end_date, datetime.date(2026, 6, 30))

    def test_duplicate_year(self):
        create_calendar(self.ctx, self.entity.pk, 2025)
        with self.assertRaises(FiscalPeriodError) as caught:
            create_calendar(self.ctx, self.entity.pk, 2025)
        self.assertEqual(caught.exception.code, "FISCAL_CALENDAR_EXISTS")
        self.assertEqual(caught.exception.status_code, 409)


class PeriodStatusTests(TestCase):

    def setUp(self):
        self.tenant, self.entity, self.ctx = make_tenant()
        create_calendar(self.ctx, self.entity.pk, 2025)
        self.jan, self.feb = FiscalPeriod.objects.order_by("period_number")[:2]

    def assertCode(self, code, func, period):
        with self.assertRaises(FiscalPeriodError) as caught:
            func(self.ctx, period.pk)
        self.assertEqual(caught.exception.code, code)

    def test_lock_close_reopen(self):
        self.assertEqual(lock_period(self.ctx, self.jan.pk).status, LOCKED)
        self.assertEqual(close_period(self.ctx, self.jan.pk).status, CLOSED)
        self.assertEqual(reopen_period(self.ctx, self.jan.pk).status, OPEN)
        self.assertEqual(
            AuditLog.objects.filter(model="FiscalPeriod", record_id=str(self.jan.pk)).count(), 3)

    def test_rule_violations(self):
        self.assertCode("PERIOD_NOT_LOCKED", close_period, self.jan)
        self.assertCode("PERIOD_NOT_CLOSED", reopen_period, self.jan)
        lock_period(self.ctx, self.jan.pk)
        self.assertCode("PERIOD_ALREADY_LOCKED", lock_period, self.jan)
        close_period(self.ctx, self.jan.pk)
        self.assertCode("PERIOD_ALREADY_CLOSED", close_period, self.jan)
        self.assertCode("CANNOT_LOCK_CLOSED_PERIOD", lock_period, self.jan)

    def test_previous_periods_must_be_closed(self):
        lock_period(self.ctx, self.feb.pk)
        with self.assertRaises(FiscalPeriodError) as caught:
            close_period(self.ctx, self.feb.pk)
        self.assertEqual(caught.exception.code, "PREVIOUS_PERIODS_NOT_CLOSED")
        self.assertEqual(caught.exception.details["openPeriods"], ["January 2025"])

    def test_list_by_status(self):
        lock_period(self.ctx, self.feb.pk)
        self.assertEqual(list_periods(self.ctx, self.entity.pk, status=LOCKED), [self.feb])

    def test_locked_period_cannot_be_deleted(self):
        lock_period(self.ctx, self.jan.pk)
        with self.assertRaises(ValidationError):
            FiscalPeriod.objects.get(pk=self.jan.pk).delete()
