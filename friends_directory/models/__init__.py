from .person import (
    MAX_USER_ID,
    PLACEHOLDER_PREFIX,
    Discord,
    Friend,
    Instagram,
    Node,
    Person,
    School,
    SchoolType,
    SocialHandle,
    X,
    is_placeholder,
    placeholder_label,
)

__all__ = [
    "MAX_USER_ID",
    "PLACEHOLDER_PREFIX",
    "Discord",
    "Friend",
    "Instagram",
    "Node",
    "Person",
    "School",
    "SchoolType",
    "SocialHandle",
    "X",
    "is_placeholder",
    "placeholder_label",
]
