import pytest

from friends_directory.core.exceptions import SerializationFailure
from friends_directory.models import Discord, Friend, Instagram, Person, School, SchoolType, X
from friends_directory.store.codec import decode_node, decode_person, encode_person


def _full_person() -> Person:
    return Person(
        uid="0x2a",
        name="Ada",
        email="ada@x.io",
        discord=Discord(uid="0x2b", handle="ada#1", display_name="Ada L", user_id=81234567890123456),
        instagram=Instagram(handle="ada.ig", user_id=17),
        snapchat="ada.snap",
        x=X(display_name="Ada on X", user_id=99),
        school=[
            School(name="Hilltop", schooltype=SchoolType.HIGH),
            School(name="Analytical U", schooltype=SchoolType.UNIVERSITY),
        ],
        friends=[Friend(uid="0x3"), Friend(uid="0x3")],
        misc=["likes engines"],
    )


def test_encode_omits_absent_fields():
    payload = encode_person(Person(uid="_:ada", name="Ada"))

    assert payload == {"uid": "_:ada", "name": "Ada"}


def test_encode_keeps_explicitly_empty_lists():
    payload = encode_person(Person(uid="0x1", misc=[]))

    assert payload == {"uid": "0x1", "misc": []}


def test_round_trip_preserves_every_field():
    person = _full_person()

    assert decode_person(encode_person(person)) == person


def test_decode_orders_positional_lists():
    row = {
        "uid": "0x1",
        "name": "Ada",
        "school": [
            {"name": "Second", "schooltype": "College", "position": 1},
            {"name": "First", "schooltype": "Elementary", "position": 0},
        ],
        "friends": [{"uid": "0x9", "position": 1}, {"uid": "0x8", "position": 0}],
    }

    person = decode_person(row)

    assert [school.name for school in person.school] == ["First", "Second"]
    assert [friend.uid for friend in person.friends] == ["0x8", "0x9"]


def test_empty_edge_lists_survive_round_trip():
    person = Person(uid="0x1", name="Ada", school=[], friends=[])

    back = decode_person(encode_person(person))

    assert back == person
    assert back.school == []
    assert back.friends == []


def test_decode_treats_null_columns_as_absent():
    person = decode_person({"uid": "0x1", "name": "Ada", "school": None, "friends": None, "discord": None})

    assert person.school is None
    assert person.friends is None
    assert person.discord is None


def test_decode_rejects_unknown_school_type():
    row = {"uid": "0x1", "school": [{"name": "Sandbox", "schooltype": "Kindergarten"}]}

    with pytest.raises(SerializationFailure):
        decode_person(row)


def test_decode_node_requires_name():
    assert decode_node({"uid": "0x1", "name": "Ada"}).name == "Ada"
    with pytest.raises(SerializationFailure):
        decode_node({"uid": "0x1"})
