import datetime
import logging
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import InvalidAmount, PersistenceFailure
from ..models.transaction import to_cents

logger = logging.getLogger(__name__)


@contextmanager
def atomic_block(operation):
    """
    Run a group of writes as one unit.

    Domain errors raised inside propagate unchanged (the block is still
    rolled back). Database errors are logged with detail and re-raised as
    PersistenceFailure so callers never see driver internals.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.exception("Atomic block '%s' rolled back", operation)
        raise PersistenceFailure(operation) from exc


# upper bound of a DecimalField(max_digits=18, decimal_places=2) column
MAX_MONEY = Decimal("1e16")


def parse_amount(value, message="Invalid payment amount"):
    """Return a positive, finite amount rounded to cents or raise InvalidAmount."""
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidAmount(message)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(message)
    if not amount.is_finite() or amount <= 0 or amount >= MAX_MONEY:
        raise InvalidAmount(message)
    try:
        amount = to_cents(amount)
    except InvalidOperation:
        raise InvalidAmount(message)
    if amount <= 0:
        raise InvalidAmount(message)
    return amount


def parse_decimal(value, field, default=None, minimum=Decimal("0"),
                  max_digits=18, places=2):
    """
    Non-amount numerics (quantity, unit price, tax rate).

    The value must fit a DecimalField(max_digits, places) column as is;
    extra decimal places are rejected rather than rounded.
    """
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field} is required")
        return Decimal(default)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}")
    if not number.is_finite() or number < minimum:
        raise ValidationError(f"Invalid {field}")
    if number.normalize().as_tuple().exponent < -places:
        raise ValidationError(f"{field.capitalize()} allows at most {places} decimal places")
    if abs(number) >= Decimal(10) ** (max_digits - places):
        raise ValidationError(f"{field.capitalize()} is too large")
    return number


def parse_date(value, field="date", default_today=True):
    if value in (None, ""):
        if default_today:
            return timezone.localdate()
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid {field}")
