import pytest

from kpxclink.types import (
    Entry,
    Fields,
    InvalidResponseError,
    Password,
    entries_from_response,
    parse_bool_string,
)


def test_password():
    password = Password("secret")
    assert str(password) == "*****"
    assert password.plaintext() == "secret"


def test_password_hidden_in_format_and_repr():
    password = Password("secret")
    assert f"{password}" == "*****"
    assert "secret" not in repr(password)


@pytest.mark.parametrize(
    "value, expected",
    [("true", True), ("false", False), ("TRUE", True), (True, True), (False, False), (None, False)],
)
def test_bool_string(value, expected):
    assert parse_bool_string(value) is expected


def test_fields():
    fields = Fields()
    assert str(fields) == ""
    fields.append("first")
    assert str(fields) == "first"
    fields.extend(["second", "third"])
    assert str(fields) == "first,second,third"


def test_entry_from_dict():
    entry = Entry.from_dict(
        {
            "name": "site",
            "login": "user",
            "password": "secret",
            "group": "web",
            "uuid": "abc",
            "stringFields": ["a", "b"],
            "expired": "true",
        }
    )
    assert entry.name == "site"
    assert entry.login == "user"
    assert entry.password.plaintext() == "secret"
    assert entry.group == "web"
    assert entry.uuid == "abc"
    assert str(entry.fields) == "a,b"
    assert entry.expired is True


def test_entry_from_dict_defaults():
    entry = Entry.from_dict({"name": "site"})
    assert entry == Entry(name="site")
    assert entry.expired is False


def test_entry_from_dict_wrong_type():
    with pytest.raises(InvalidResponseError):
        Entry.from_dict({"name": 5})


def test_entries_from_response():
    response = {"message": {"entries": [{"name": "a", "login": "u"}, {"name": "b"}]}}
    entries = entries_from_response(response)
    assert [entry.name for entry in entries] == ["a", "b"]
    assert entries[0].login == "u"


def test_entries_null_is_empty():
    assert entries_from_response({"message": {"entries": None}}) == []


def test_entries_missing_raises():
    with pytest.raises(InvalidResponseError, match="invalid response does not include entries"):
        entries_from_response({})
    with pytest.raises(InvalidResponseError):
        entries_from_response({"message": {"hash": "x"}})