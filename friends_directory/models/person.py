"""Person data model definitions."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

PLACEHOLDER_PREFIX = "_:"

# Largest integer the graph store can hold (signed 64-bit).
MAX_USER_ID = 2**63 - 1


class SchoolType(str, Enum):
    ELEMENTARY = "Elementary"
    MIDDLE = "Middle"
    HIGH = "High"
    COLLEGE = "College"
    UNIVERSITY = "University"


class School(BaseModel):
    name: str
    schooltype: SchoolType


class SocialHandle(BaseModel):
    """Account on an external social network."""

    handle: Optional[str] = None
    display_name: Optional[str] = None
    user_id: int = Field(..., ge=0, le=MAX_USER_ID, description="Numeric account identifier on the network")


class Discord(SocialHandle):
    uid: Optional[str] = Field(None, description="Identifier of the Discord sub-record, distinct from user_id")


class Instagram(SocialHandle):
    pass


class X(SocialHandle):
    pass


class Friend(BaseModel):
    """Directed reference to another person by permanent identifier."""

    uid: str


class Person(BaseModel):
    uid: Optional[str] = Field(None, description="Placeholder label (_:label) or permanent identifier")
    name: Optional[str] = None
    email: Optional[str] = None
    discord: Optional[Discord] = None
    instagram: Optional[Instagram] = None
    snapchat: Optional[str] = None
    x: Optional[X] = None
    school: Optional[List[School]] = None
    friends: Optional[List[Friend]] = None
    misc: Optional[List[str]] = None


class Node(BaseModel):
    """Minimal projection used to populate the name index."""

    uid: str
    name: str


def is_placeholder(uid: str) -> bool:
    return uid.startswith(PLACEHOLDER_PREFIX)


def placeholder_label(uid: str) -> str:
    """Strip the ``_:`` prefix; the store keys its response by the bare label."""

    return uid[len(PLACEHOLDER_PREFIX):]
