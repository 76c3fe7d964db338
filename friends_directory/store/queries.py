"""Cypher templates and read-query construction for the people graph.

Every value reaches the store as a bound parameter. The only interpolated
fragments are labels and relationship types taken from ``ACCOUNT_LABELS``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

# person field -> (relationship type, node label)
ACCOUNT_LABELS = {
    "discord": ("HAS_DISCORD", "Discord"),
    "instagram": ("HAS_INSTAGRAM", "Instagram"),
    "x": ("HAS_X", "XAccount"),
}

PERSON_SCALARS = ("name", "email", "snapchat", "misc")

PERSON_PROJECTION = """
RETURN p.uid AS uid,
       p.name AS name,
       p.email AS email,
       head([(p)-[:HAS_DISCORD]->(d:Discord) | d {.uid, .handle, .display_name, .user_id}]) AS discord,
       head([(p)-[:HAS_INSTAGRAM]->(i:Instagram) | i {.handle, .display_name, .user_id}]) AS instagram,
       p.snapchat AS snapchat,
       head([(p)-[:HAS_X]->(xa:XAccount) | xa {.handle, .display_name, .user_id}]) AS x,
       CASE WHEN p.school_recorded
            THEN [(p)-[r:ATTENDED]->(s:School) | s {.name, .schooltype, position: r.position}]
       END AS school,
       CASE WHEN p.friends_recorded
            THEN [(p)-[r:FRIEND]->(f:Person) | {uid: f.uid, position: r.position}]
       END AS friends,
       p.misc AS misc
"""

PERSON_BY_NAME = "MATCH (p:Person) WHERE p.name = $name" + PERSON_PROJECTION

PERSON_BY_UID = "MATCH (p:Person) WHERE p.uid = $uid" + PERSON_PROJECTION

ALL_PEOPLE = "MATCH (p:Person) WHERE p.name IS NOT NULL" + PERSON_PROJECTION

ALL_NODES = """
MATCH (p:Person)
WHERE p.name IS NOT NULL
RETURN p.uid AS uid, p.name AS name
"""

CREATE_PERSON = """
CREATE (p:Person {uid: randomUUID()})
RETURN p.uid AS uid
"""

MERGE_PERSON = """
MERGE (p:Person {uid: $uid})
RETURN p.uid AS uid
"""

SET_PERSON_PROPERTIES = """
MATCH (p:Person {uid: $uid})
SET p += $properties
"""

REPLACE_ACCOUNT = """
MATCH (p:Person {{uid: $uid}})
OPTIONAL MATCH (p)-[:{rel}]->(old:{label})
DETACH DELETE old
WITH DISTINCT p
CREATE (p)-[:{rel}]->(account:{label})
SET account = $account
"""

REPLACE_SCHOOLS = """
MATCH (p:Person {uid: $uid})
OPTIONAL MATCH (p)-[:ATTENDED]->(old:School)
DETACH DELETE old
WITH DISTINCT p
SET p.school_recorded = true
WITH p
UNWIND range(0, size($schools) - 1) AS position
CREATE (p)-[:ATTENDED {position: position}]->(:School {
    name: $schools[position].name,
    schooltype: $schools[position].schooltype
})
"""

# Unknown friend identifiers become bare Person stubs so the edge survives.
REPLACE_FRIENDS = """
MATCH (p:Person {uid: $uid})
OPTIONAL MATCH (p)-[old:FRIEND]->()
DELETE old
WITH DISTINCT p
SET p.friends_recorded = true
WITH p
UNWIND range(0, size($friends) - 1) AS position
MERGE (f:Person {uid: $friends[position]})
CREATE (p)-[:FRIEND {position: position}]->(f)
"""

# Locking p before counting serialises concurrent appends to the same person.
APPEND_FRIEND = """
MATCH (p:Person {uid: $uid})
SET p.friends_recorded = true
WITH p
OPTIONAL MATCH (p)-[r:FRIEND]->()
WITH p, count(r) AS position
MERGE (f:Person {uid: $friend})
CREATE (p)-[:FRIEND {position: position}]->(f)
RETURN p.uid AS uid
"""

DETACH_DELETE_ALL = "MATCH (n) DETACH DELETE n"

SHOW_CONSTRAINTS = "SHOW CONSTRAINTS YIELD name RETURN name"

SHOW_INDEXES = "SHOW INDEXES YIELD name, type WHERE type <> 'LOOKUP' RETURN name"

SCHEMA_STATEMENTS = [
    "CREATE CONSTRAINT person_uid IF NOT EXISTS FOR (p:Person) REQUIRE p.uid IS UNIQUE",
    "CREATE INDEX person_name IF NOT EXISTS FOR (p:Person) ON (p.name)",
    "CREATE INDEX person_age IF NOT EXISTS FOR (p:Person) ON (p.age)",
]


class QueryKind(str, Enum):
    BY_NAME = "by_name"
    BY_UID = "by_uid"
    ALL = "all"
    NODES = "nodes"


@dataclass(frozen=True)
class ReadQuery:
    kind: QueryKind
    text: str
    params: Dict[str, Any] = field(default_factory=dict)


def person_by_name(name: str) -> ReadQuery:
    """Exact-match lookup; the store does not enforce unique names."""

    return ReadQuery(QueryKind.BY_NAME, PERSON_BY_NAME, {"name": name})


def person_by_uid(uid: str) -> ReadQuery:
    return ReadQuery(QueryKind.BY_UID, PERSON_BY_UID, {"uid": uid})


def all_people() -> ReadQuery:
    return ReadQuery(QueryKind.ALL, ALL_PEOPLE)


def all_nodes() -> ReadQuery:
    return ReadQuery(QueryKind.NODES, ALL_NODES)


def replace_account_query(field_name: str) -> str:
    rel, label = ACCOUNT_LABELS[field_name]
    return REPLACE_ACCOUNT.format(rel=rel, label=label)
