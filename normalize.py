import math
from typing import Any, Optional, Union

from bson import ObjectId

from errors import ValidationError

VISIBILITIES = ("Public", "Private")
ROLES = ("User", "Admin")


def normalize_email(email: Optional[str]) -> str:
    """Lower-case and trim an email. Empty input gives an empty string."""
    if not email:
        return ""
    return str(email).strip().lower()


def normalize_visibility(value: Optional[str], default: Optional[str] = "Public") -> str:
    """Canonical visibility. Empty input takes ``default``; with no default it is rejected."""
    if value is None or str(value).strip() == "":
        if default is None:
            raise ValidationError("visibility must be Public or Private")
        return default
    for canonical in VISIBILITIES:
        if str(value).strip().lower() == canonical.lower():
            return canonical
    raise ValidationError("visibility must be Public or Private")


def normalize_role(value: Optional[str]) -> str:
    for canonical in ROLES:
        if value is not None and str(value).strip().lower() == canonical.lower():
            return canonical
    raise ValidationError("role must be Admin or User")


def coerce_price(value: Any) -> Optional[Union[int, float]]:
    """Return the numeric price, or None when no price was given.

    Zero is a real price and is kept as is.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("price must be a number")
    if isinstance(value, (int, float)):
        price = value
    else:
        text = str(value).strip()
        if text == "":
            return None
        try:
            price = float(text)
        except ValueError:
            raise ValidationError("price must be a number")
    if not math.isfinite(price):
        raise ValidationError("price must be a finite number")
    return price


def parse_object_id(value: Any, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise ValidationError(f"Invalid {label}")
    return ObjectId(str(value))


def first_present(data: dict, *keys: str) -> Any:
    """Value of the first key in ``keys`` that holds a non-empty value."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None
