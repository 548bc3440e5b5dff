import calendar
import datetime
import logging

from ..exceptions import (EntityNotFound, FiscalPeriodClosed,
                          FiscalPeriodError, RecordNotFound)
from ..models import Entity, FiscalCalendar, FiscalPeriod
from ..models.period import CLOSED, LOCKED, OPEN
from .audit_helper import log_action
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def find_period(uow, entity_id, date):
    """
    The period covering ``date``. None means the entity does not use
    fiscal control for that date, so posting is allowed.
    """
    return (
        FiscalPeriod.objects.using(uow.using)
        .filter(entity_id=entity_id, start_date__lte=date, end_date__gte=date)
        .order_by("start_date")
        .first()
    )


def assert_period_open(uow, entity_id, date):
    uow.require_active()
    period = find_period(uow, entity_id, date)
    if period is not None and period.status in (LOCKED, CLOSED):
        raise FiscalPeriodClosed(
            f'Cannot post to {period.status.lower()} fiscal period "{period.name}"',
            details={
                "periodId": period.pk,
                "periodName": period.name,
                "periodStatus": period.status,
            },
        )
    return period


# ---------- Fiscal calendar service ----------

def _month_end(year, month):
    return datetime.date(year, month, calendar.monthrange(year, month)[1])


def _load_entity(uow, entity_id):
    entity = Entity.objects.for_tenant(uow.ctx.tenant).filter(pk=entity_id).first()
    if entity is None:
        raise EntityNotFound("Entity not found", details={"entityId": entity_id})
    return entity


def create_calendar(ctx, entity_id, year, start_month=1):
    """Create a fiscal year of twelve monthly OPEN periods."""
    with unit_of_work(ctx) as uow:
        entity = _load_entity(uow, entity_id)
        if FiscalCalendar.objects.filter(entity=entity, year=year).exists():
            raise FiscalPeriodError(
                f"Fiscal calendar for {year} already exists",
                code="FISCAL_CALENDAR_EXISTS", status_code=409,
                details={"entityId": entity.pk, "year": year},
            )

        months = []
        y, m = year, start_month
        for _ in range(12):
            months.append((y, m))
            m += 1
            if m > 12:
                y, m = y + 1, 1

        start = datetime.date(*months[0], 1)
        end = _month_end(*months[-1])
        cal = FiscalCalendar.objects.create(
            entity=entity, year=year, start_date=start, end_date=end)
        for number, (py, pm) in enumerate(months, start=1):
            FiscalPeriod.objects.create(
                calendar=cal,
                entity=entity,
                period_number=number,
                name=f"{calendar.month_name[pm]} {py}",
                start_date=datetime.date(py, pm, 1),
                end_date=_month_end(py, pm),
                status=OPEN,
            )

        log_action(uow, action="CREATE", model="FiscalCalendar",
                   record_id=cal.pk, entity_id=entity.pk,
                   after={"year": year, "startDate": start, "endDate": end,
                          "periodCount": 12})
        return cal


def list_periods(ctx, entity_id, status=None):
    qs = FiscalPeriod.objects.for_tenant(ctx.tenant).filter(entity_id=entity_id)
    if status:
        qs = qs.filter(status=status)
    return list(qs.order_by("start_date"))


def _locked_period(uow, period_id):
    period = (
        FiscalPeriod.objects.for_tenant(uow.ctx.tenant)
        .select_for_update()
        .filter(pk=period_id)
        .first()
    )
    if period is None:
        raise RecordNotFound("Fiscal period not found",
                             details={"periodId": period_id})
    return period


def _set_status(uow, period, new_status):
    before = {"status": period.status}
    period.status = new_status
    period.save(update_fields=["status"])
    log_action(uow, action="UPDATE", model="FiscalPeriod", record_id=period.pk,
               entity_id=period.entity_id, before=before,
               after={"status": new_status})
    logger.info("Fiscal period %s (%s) -> %s", period.name, period.pk, new_status)
    return period


def lock_period(ctx, period_id):
    """OPEN → LOCKED."""
    with unit_of_work(ctx) as uow:
        period = _locked_period(uow, period_id)
        if period.status == LOCKED:
            raise FiscalPeriodError("Period is already locked",
                                    code="PERIOD_ALREADY_LOCKED",
                                    details={"periodId": period.pk})
        if period.status == CLOSED:
            raise FiscalPeriodError("Cannot lock a closed period",
                                    code="CANNOT_LOCK_CLOSED_PERIOD",
                                    details={"periodId": period.pk})
        return _set_status(uow, period, LOCKED)


def close_period(ctx, period_id):
    """LOCKED → CLOSED; every earlier period of the calendar must be closed."""
    with unit_of_work(ctx) as uow:
        period = _locked_period(uow, period_id)
        if period.status == CLOSED:
            raise FiscalPeriodError("Period is already closed",
                                    code="PERIOD_ALREADY_CLOSED",
                                    details={"periodId": period.pk})
        if period.status == OPEN:
            raise FiscalPeriodError("Period must be locked before closing",
                                    code="PERIOD_NOT_LOCKED",
                                    details={"periodId": period.pk})
        open_before = (
            FiscalPeriod.objects.filter(
                calendar_id=period.calendar_id,
                period_number__lt=period.period_number,
            )
            .exclude(status=CLOSED)
            .values_list("name", flat=True)
        )
        if open_before:
            raise FiscalPeriodError(
                "All previous periods must be closed first",
                code="PREVIOUS_PERIODS_NOT_CLOSED",
                details={"periodId": period.pk, "openPeriods": list(open_before)},
            )
        return _set_status(uow, period, CLOSED)


def reopen_period(ctx, period_id):
    """LOCKED or CLOSED → OPEN."""
    with unit_of_work(ctx) as uow:
        period = _locked_period(uow, period_id)
        if period.status == OPEN:
            raise FiscalPeriodError("Period is already open",
                                    code="PERIOD_NOT_CLOSED",
                                    details={"periodId": period.pk})
        return _set_status(uow, period, OPEN)
