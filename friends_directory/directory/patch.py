"""Sparse field patches applied onto a fetched Person.

Patch keys are flat strings as they arrive in a query string: top-level
fields use their own name, sub-fields of a social account use
``<account>-<field>`` (``discord-handle``, ``x-user_id``).
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Tuple, Type

from pydantic import TypeAdapter, ValidationError

from friends_directory.core.exceptions import ValidationFailure
from friends_directory.models import MAX_USER_ID, Discord, Instagram, Person, School, SocialHandle, X

SCALAR_FIELDS = ("name", "email", "snapchat")

ACCOUNT_MODELS: Dict[str, Type[SocialHandle]] = {
    "discord": Discord,
    "instagram": Instagram,
    "x": X,
}

ACCOUNT_SUBFIELDS: Dict[str, Tuple[str, ...]] = {
    "discord": ("uid", "handle", "display_name", "user_id"),
    "instagram": ("handle", "display_name", "user_id"),
    "x": ("handle", "display_name", "user_id"),
}

PATCH_FIELDS: Tuple[str, ...] = (
    SCALAR_FIELDS
    + tuple(f"{account}-{sub}" for account, subs in ACCOUNT_SUBFIELDS.items() for sub in subs)
    + ("school", "misc")
)

_schools = TypeAdapter(List[School])
_strings = TypeAdapter(List[str])


def extract_patch(params: Mapping[str, str]) -> Dict[str, str]:
    """Keep only recognised patch keys; anything else is ignored."""

    return {key: params[key] for key in PATCH_FIELDS if key in params}


def parse_patch(patch: Mapping[str, str]) -> Dict[str, Any]:
    """Convert raw textual values to typed ones or raise ``ValidationFailure``."""

    parsed: Dict[str, Any] = {}
    for key, raw in patch.items():
        if key not in PATCH_FIELDS:
            raise ValidationFailure(f"Unknown field {key!r}")
        if key.endswith("-user_id"):
            parsed[key] = _parse_user_id(key, raw)
        elif key == "school":
            parsed[key] = _parse_schools(raw)
        elif key == "name":
            parsed[key] = _parse_name(raw)
        elif key == "misc":
            parsed[key] = _parse_misc(raw)
        else:
            parsed[key] = raw
    return parsed


def apply_patch(person: Person, patch: Mapping[str, str]) -> Person:
    """Overwrite exactly the patched fields of ``person`` in place.

    The whole patch is validated before the first write, so a rejected patch
    leaves the record untouched.
    """

    parsed = parse_patch(patch)

    accounts: Dict[str, Dict[str, Any]] = {}
    for key, value in parsed.items():
        account, _, sub = key.partition("-")
        if sub:
            accounts.setdefault(account, {})[sub] = value

    for account, values in accounts.items():
        if getattr(person, account) is None and "user_id" not in values:
            raise ValidationFailure(f"{account} is not set on this person; include {account}-user_id to create it")

    for key in SCALAR_FIELDS:
        if key in parsed:
            setattr(person, key, parsed[key])
    if "school" in parsed:
        person.school = parsed["school"]
    if "misc" in parsed:
        person.misc = parsed["misc"]

    for account, values in accounts.items():
        current = getattr(person, account)
        if current is None:
            setattr(person, account, ACCOUNT_MODELS[account](**values))
            continue
        for sub, value in values.items():
            setattr(current, sub, value)

    return person


def _parse_user_id(key: str, raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValidationFailure(f"{key} must be an integer, got {raw!r}") from None
    if not 0 <= value <= MAX_USER_ID:
        raise ValidationFailure(f"{key} must be between 0 and {MAX_USER_ID}, got {raw!r}")
    return value


def _parse_name(raw: str) -> str:
    if not raw.strip():
        raise ValidationFailure("name cannot be empty")
    return raw


def _parse_schools(raw: str) -> List[School]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationFailure(f"school must be JSON: {exc.msg}") from exc
    if isinstance(data, dict):
        data = [data]
    try:
        return _schools.validate_python(data)
    except ValidationError as exc:
        raise ValidationFailure(f"school is not a list of schools: {exc.error_count()} error(s)") from exc


def _parse_misc(raw: str) -> List[str]:
    try:
        return _strings.validate_json(raw)
    except ValidationError as exc:
        raise ValidationFailure("misc must be a JSON array of strings") from exc
