import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..exceptions import InvalidInput, MissingFXRate
from ..models import FXRate

logger = logging.getLogger(__name__)

ONE = Decimal("1")


def to_minor(amount, rate):
    """round(amount * rate) to the nearest integer minor unit, half up."""
    value = (Decimal(amount) * Decimal(str(rate))).quantize(
        ONE, rounding=ROUND_HALF_UP)
    return int(value)


def _coerce_rate(rate):
    try:
        value = Decimal(str(rate))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput("Exchange rate must be a number",
                           details={"exchangeRate": rate}) from exc
    if value <= 0:
        raise InvalidInput("Exchange rate must be positive",
                           details={"exchangeRate": rate})
    return value


def get_rate(uow, base, quote, as_of, manual_rate=None):
    """
    Rate converting ``base`` into ``quote`` for ``as_of``.

    A manual override wins. Otherwise the most recent stored rate dated on or
    before ``as_of`` is used (a Saturday takes Friday's rate).
    """
    if base == quote:
        return ONE
    if manual_rate is not None:
        return _coerce_rate(manual_rate)

    uow.require_active()
    record = (
        FXRate.objects.using(uow.using)
        .filter(from_currency=base, to_currency=quote, date__lte=as_of)
        .order_by("-date")
        .first()
    )
    if record is None:
        raise MissingFXRate(
            f"No FX rate found for {base}/{quote} on or before {as_of.isoformat()}",
            details={"base": base, "quote": quote, "date": as_of.isoformat()},
        )
    logger.debug("FX %s/%s as of %s -> %s (dated %s)",
                 base, quote, as_of, record.rate, record.date)
    return record.rate


def rate_for(uow, currency, functional_currency, as_of, manual_rate=None):
    """``None`` when no conversion applies, else the rate to use."""
    if not currency or currency == functional_currency:
        return None
    return get_rate(uow, currency, functional_currency, as_of, manual_rate)
