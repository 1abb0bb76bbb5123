"""
Input validation and sanitization helpers.

Every validator is a pure function returning a ``ValidationResult``; none of
them raise on bad input.
"""
import re
import sys
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup
from dateutil.parser import parse as parse_date

from utils.constants import PAGINATION

PATTERNS = {
    "UUID": re.compile(
        r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
        re.IGNORECASE,
    ),
    "EMAIL": re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
    "USERNAME": re.compile(r"^[a-zA-Z0-9]{3,30}$"),
    "COUNTRY_CODE": re.compile(r"^[A-Z]{2}$"),
    "PHONE": re.compile(r"^\+?[\d\s\-\(\)]+$"),
    "DATE_ISO": re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?Z?$"),
    "DATE_SIMPLE": re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    "ALPHANUMERIC": re.compile(r"^[a-zA-Z0-9]+$"),
    "NUMERIC": re.compile(r"^\d+$"),
    "DECIMAL": re.compile(r"^\d+(\.\d+)?$"),
}

MAX_SAFE_INTEGER = 2 ** 53 - 1
MIN_SAFE_INTEGER = -MAX_SAFE_INTEGER


@dataclass(frozen=True)
class ValidationResult:
    """Pass/fail outcome of a validator with its normalized value."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    value: Any = None

    def __post_init__(self) -> None:
        if self.is_valid and self.errors:
            raise ValueError("A valid result cannot carry errors")
        if not self.is_valid and self.value is not None:
            raise ValueError("An invalid result cannot carry a value")

    @classmethod
    def ok(cls, value: Any = None) -> "ValidationResult":
        return cls(True, [], value)

    @classmethod
    def fail(cls, *errors: str) -> "ValidationResult":
        return cls(False, list(errors), None)


Validator = Callable[[Any], ValidationResult]


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value is False


def _missing(field_name: str, required: bool) -> ValidationResult:
    if required:
        return ValidationResult.fail(f"{field_name} is required")
    return ValidationResult.ok(None)


def validate_required(value: Any, field_name: str = "Field") -> ValidationResult:
    if value is None or value == "":
        return ValidationResult.fail(f"{field_name} is required")
    return ValidationResult.ok(value)


def validate_email(email: Any, required: bool = True, field_name: str = "Email") -> ValidationResult:
    """Trim and lower-case an email address."""
    if _is_blank(email):
        return _missing(field_name, required)
    if not isinstance(email, str):
        return ValidationResult.fail(f"{field_name} must be a string")

    sanitized = email.strip().lower()
    if not PATTERNS["EMAIL"].match(sanitized):
        return ValidationResult.fail("Invalid email format")
    if len(sanitized) > 254:
        return ValidationResult.fail(f"{field_name} is too long (max 254 characters)")
    return ValidationResult.ok(sanitized)


def validate_string_length(
    value: Any,
    min_length: int = 0,
    max_length: int = 255,
    field_name: str = "Field",
    required: bool = True
) -> ValidationResult:
    if _is_blank(value):
        return _missing(field_name, required)
    if not isinstance(value, str):
        return ValidationResult.fail(f"{field_name} must be a string")

    sanitized = value.strip()
    if len(sanitized) < min_length:
        return ValidationResult.fail(
            f"{field_name} must be at least {min_length} characters long"
        )
    if len(sanitized) > max_length:
        return ValidationResult.fail(
            f"{field_name} must be no more than {max_length} characters long"
        )
    return ValidationResult.ok(sanitized)


def validate_uuid(value: Any, field_name: str = "ID", required: bool = True) -> ValidationResult:
    if _is_blank(value):
        return _missing(field_name, required)
    if not isinstance(value, str):
        return ValidationResult.fail(f"{field_name} must be a string")

    sanitized = value.strip().lower()
    if not PATTERNS["UUID"].match(sanitized):
        return ValidationResult.fail(f"Invalid {field_name} format")
    return ValidationResult.ok(sanitized)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if number != number or number in (float("inf"), float("-inf")):
            return None
        return number
    return None


def validate_number(
    value: Any,
    min_value: float = MIN_SAFE_INTEGER,
    max_value: float = MAX_SAFE_INTEGER,
    field_name: str = "Number",
    required: bool = True
) -> ValidationResult:
    """Numeric strings are coerced to ``int`` or ``float``."""
    if value is None:
        return _missing(field_name, required)

    number = _to_number(value)
    if number is None:
        return ValidationResult.fail(f"{field_name} must be a valid number")
    if number < min_value:
        return ValidationResult.fail(f"{field_name} must be at least {min_value}")
    if number > max_value:
        return ValidationResult.fail(f"{field_name} must be no more than {max_value}")
    return ValidationResult.ok(number)


def validate_integer(
    value: Any,
    min_value: int = MIN_SAFE_INTEGER,
    max_value: int = MAX_SAFE_INTEGER,
    field_name: str = "Integer",
    required: bool = True
) -> ValidationResult:
    result = validate_number(value, min_value, max_value, field_name, required)
    if not result.is_valid or result.value is None:
        return result
    if isinstance(result.value, float):
        if not result.value.is_integer():
            return ValidationResult.fail(f"{field_name} must be an integer")
        return ValidationResult.ok(int(result.value))
    return result


def validate_date(value: Any, field_name: str = "Date", required: bool = True) -> ValidationResult:
    """Accept ``datetime``/``date`` objects or any string dateutil can parse."""
    if _is_blank(value):
        return _missing(field_name, required)
    if isinstance(value, datetime):
        return ValidationResult.ok(value)
    if isinstance(value, date):
        return ValidationResult.ok(datetime(value.year, value.month, value.day))
    if not isinstance(value, str):
        return ValidationResult.fail(f"{field_name} must be a valid date")

    try:
        parsed = parse_date(value)
    except (ValueError, OverflowError):
        return ValidationResult.fail(f"{field_name} must be a valid date")
    return ValidationResult.ok(parsed)


def validate_enum(
    value: Any,
    allowed_values: Sequence[Any],
    field_name: str = "Field",
    required: bool = True
) -> ValidationResult:
    if _is_blank(value):
        return _missing(field_name, required)
    if value not in allowed_values:
        allowed = ", ".join(str(v) for v in allowed_values)
        return ValidationResult.fail(f"{field_name} must be one of: {allowed}")
    return ValidationResult.ok(value)


def validate_array(
    value: Any,
    min_length: int = 0,
    max_length: int = 1000,
    field_name: str = "Array",
    required: bool = True
) -> ValidationResult:
    if value is None:
        return _missing(field_name, required)
    if not isinstance(value, (list, tuple)):
        return ValidationResult.fail(f"{field_name} must be an array")
    if len(value) < min_length:
        return ValidationResult.fail(f"{field_name} must have at least {min_length} items")
    if len(value) > max_length:
        return ValidationResult.fail(f"{field_name} must have no more than {max_length} items")
    return ValidationResult.ok(list(value))


def validate_phone(phone: Any, required: bool = True) -> ValidationResult:
    if _is_blank(phone):
        return _missing("Phone number", required)
    if not isinstance(phone, str):
        return ValidationResult.fail("Phone number must be a string")

    sanitized = phone.strip()
    if not PATTERNS["PHONE"].match(sanitized):
        return ValidationResult.fail("Invalid phone number format")
    if len(sanitized) > 20:
        return ValidationResult.fail("Phone number is too long")
    return ValidationResult.ok(sanitized)


def validate_username(username: Any, required: bool = True) -> ValidationResult:
    if _is_blank(username):
        return _missing("Username", required)
    if not isinstance(username, str):
        return ValidationResult.fail("Username must be a string")

    sanitized = username.strip()
    if not PATTERNS["USERNAME"].match(sanitized):
        return ValidationResult.fail("Username must be 3-30 alphanumeric characters")
    return ValidationResult.ok(sanitized)


def validate_object(data: Any, validators: Mapping[str, Validator]) -> ValidationResult:
    """
    Run one validator per field and aggregate the outcome.

    Args:
        data: Mapping to validate
        validators: Field name to validator

    Returns:
        Invalid result with ``"<field>: <error>"`` messages for every failing
        field, or a valid result whose value holds only the passing non-null
        fields.
    """
    if not isinstance(data, Mapping):
        return ValidationResult.fail("Data must be an object")

    errors: List[str] = []
    validated: Dict[str, Any] = {}
    for field_name, validator in validators.items():
        result = validator(data.get(field_name))
        if not result.is_valid:
            errors.extend(f"{field_name}: {error}" for error in result.errors)
        elif result.value is not None:
            validated[field_name] = result.value

    if errors:
        return ValidationResult.fail(*errors)
    return ValidationResult.ok(validated)


def _with_default(validator: Validator, default: Any) -> Validator:
    def validate(value: Any) -> ValidationResult:
        result = validator(value)
        if result.is_valid and result.value is None:
            return ValidationResult.ok(default)
        return result
    return validate


def validate_pagination(params: Optional[Mapping[str, Any]] = None) -> ValidationResult:
    """
    Validate ``limit``, ``offset`` and ``last_evaluated_key``.

    Absent ``limit`` and ``offset`` take the defaults from ``PAGINATION``.
    """
    validators = {
        "limit": _with_default(
            lambda v: validate_integer(v, 1, PAGINATION["MAX_LIMIT"], "Limit", False),
            PAGINATION["DEFAULT_LIMIT"],
        ),
        "offset": _with_default(
            lambda v: validate_integer(v, 0, sys.maxsize, "Offset", False),
            PAGINATION["DEFAULT_OFFSET"],
        ),
        "last_evaluated_key": lambda v: validate_string_length(
            v, 1, 1000, "LastEvaluatedKey", False
        ),
    }
    return validate_object(params if params is not None else {}, validators)


_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)


def sanitize_input(value: Any) -> Any:
    """Strip markup-ish fragments from free text; non-strings pass through."""
    if not isinstance(value, str):
        return value
    cleaned = re.sub(r"[<>]", "", value.strip())
    cleaned = _JS_PROTOCOL.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    return cleaned[:10000]


def sanitize_html(value: Any) -> Any:
    """Remove all HTML tags, keeping the text content."""
    if not isinstance(value, str):
        return value
    return BeautifulSoup(value, "html.parser").get_text().strip()
