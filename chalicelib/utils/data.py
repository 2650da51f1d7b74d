import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP

from chalicelib.utils.exceptions import ValidationException

PROTECTED_KEYS = ('id', 'id_', 'request_data', 'partkey', 'sortkey', 'record_type')


def substitute_keys(dict_to_process: dict, base_keys: dict):
    """
    Renames keys in place by the base_keys map, a key mapped to None is removed
    """
    for old_key, new_key in base_keys.items():
        if old_key not in dict_to_process:
            continue
        value = dict_to_process.pop(old_key)
        if new_key and new_key not in dict_to_process:
            dict_to_process[new_key] = value


def parse_raw_body(chalice_request) -> dict:
    """
    JSON object of the request body, floats come as Decimal and null values are dropped
    """
    raw_body = chalice_request.raw_body
    if not raw_body:
        return {}
    try:
        body = json.loads(raw_body, parse_float=Decimal)
    except ValueError:
        raise ValidationException('Request body is not a valid JSON')
    if not isinstance(body, dict):
        raise ValidationException('Request body must be a JSON object')
    return drop_none_values(body)


def drop_none_values(item):
    if isinstance(item, dict):
        return {key: drop_none_values(value) for key, value in item.items() if value is not None}
    if isinstance(item, list):
        return [drop_none_values(value) for value in item]
    return item


def pop_protected_keys(item: dict, keys=PROTECTED_KEYS) -> dict:
    """ Keys which are never taken from a request body """
    for key in keys:
        item.pop(key, None)
    return item


def to_decimal(value, default=None):
    if isinstance(value, bool) or value is None:
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def floor_amount(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal('1'), rounding=ROUND_FLOOR)


def round_amount(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds')


def parse_iso(value: str) -> datetime:
    """
    Parses an ISO-8601 timestamp, a trailing Z is accepted.
    Naive timestamps are treated as UTC
    """
    if not isinstance(value, str) or not value:
        raise ValidationException(f'Wrong date value {value!r}')
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise ValidationException(f'Wrong date value {value!r}')
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: str) -> str:
    return parse_iso(value).astimezone(timezone.utc).isoformat(timespec='seconds')
