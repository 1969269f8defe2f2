from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional

from flask import current_app, request

from ..core.constants import SYSTEM_ACTOR_ID
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date, parse_iso_datetime

ORGANIZATION_HEADER = "X-Organization-Id"
ACTOR_HEADER = "X-Actor-Id"


def to_jsonable(value: Any) -> Any:
    """Dataclasses, enums, dates and Decimals to plain JSON values."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def organization_id() -> int:
    raw = request.headers.get(ORGANIZATION_HEADER) or current_app.config.get("DEFAULT_ORGANIZATION_ID")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{ORGANIZATION_HEADER} header is required")
    if value <= 0:
        raise ValidationError(f"{ORGANIZATION_HEADER} header is invalid")
    return value


def actor_id() -> int:
    raw = request.headers.get(ACTOR_HEADER)
    if raw is None:
        return SYSTEM_ACTOR_ID
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{ACTOR_HEADER} header is invalid")


def _parse(value: Any, field_name: str, parser: Callable[[str], Any]) -> Any:
    if value is None or value == "":
        return None
    try:
        return parser(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid value: {value!r}")


def optional_date(value: Any, field_name: str) -> Optional[date]:
    return _parse(value, field_name, parse_iso_date)


def optional_datetime(value: Any, field_name: str) -> Optional[datetime]:
    return _parse(value, field_name, parse_iso_datetime)


def optional_int(value: Any, field_name: str) -> Optional[int]:
    return _parse(value, field_name, int)


def required(data: dict, field_name: str) -> Any:
    value = data.get(field_name)
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    return value
