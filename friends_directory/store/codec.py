"""Conversion between Person models and the store's JSON wire format."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from friends_directory.core.exceptions import SerializationFailure
from friends_directory.models import Node, Person

logger = logging.getLogger(__name__)

_POSITIONAL_FIELDS = ("school", "friends")


def encode_person(person: Person) -> Dict[str, Any]:
    """Serialize a record as a mutation payload; absent fields are omitted."""

    try:
        return person.model_dump(mode="json", exclude_none=True)
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"Person {person.uid!r} cannot be encoded: {exc}") from exc


def decode_person(row: Mapping[str, Any]) -> Person:
    """Build a Person from one projected store row."""

    document: Dict[str, Any] = {key: value for key, value in row.items() if value is not None}
    for key in _POSITIONAL_FIELDS:
        if key in document:
            document[key] = _ordered(document[key])
    try:
        return Person.model_validate(document)
    except ValidationError as exc:
        logger.error("Undecodable person row for uid %s: %s", row.get("uid"), exc)
        raise SerializationFailure(f"Stored person {row.get('uid')!r} cannot be decoded") from exc


def decode_people(rows: List[Mapping[str, Any]]) -> List[Person]:
    return [decode_person(row) for row in rows]


def decode_node(row: Mapping[str, Any]) -> Node:
    try:
        return Node.model_validate(dict(row))
    except ValidationError as exc:
        raise SerializationFailure(f"Stored node {row.get('uid')!r} cannot be decoded") from exc


def _ordered(items: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    entries = [dict(item) for item in items if item]
    if any("position" in entry for entry in entries):
        entries.sort(key=lambda entry: entry.get("position", 0))
    for entry in entries:
        entry.pop("position", None)
    return entries
