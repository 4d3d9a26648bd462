"""Data types exchanged with the KeePassXC browser integration."""

from dataclasses import dataclass, field


class InvalidResponseError(ValueError):
    """Raised when a response lacks the expected content."""

    def __init__(self, message="invalid response does not include entries"):
        super().__init__(message)


@dataclass(frozen=True)
class Password:
    """A password that hides its value when printed."""

    value: str = field(default="", repr=False)

    def __str__(self):
        return "*****"

    def __format__(self, spec):
        return format(str(self), spec)

    def plaintext(self):
        """Return the real password."""
        return self.value


class Fields(list):
    """A list of string fields, printed comma separated."""

    def __str__(self):
        return ",".join(self)


def parse_bool_string(value):
    """Interpret a JSON boolean or a string such as "true" as a bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip('"').lower() == "true"
    return False


def _string(data, key):
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidResponseError(f"entry field '{key}' must be a string")
    return value


def _fields(data):
    value = data.get("stringFields")
    if value is None:
        return Fields()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidResponseError("entry field 'stringFields' must be a list of strings")
    return Fields(value)


@dataclass
class Entry:
    """A login entry returned by KeePassXC."""

    name: str = ""
    login: str = ""
    password: Password = Password()
    group: str = ""
    uuid: str = ""
    fields: Fields = field(default_factory=Fields)
    expired: bool = False

    @classmethod
    def from_dict(cls, data):
        """Build an entry from its decoded JSON object."""
        if not isinstance(data, dict):
            raise InvalidResponseError("entry must be an object")
        return cls(
            name=_string(data, "name"),
            login=_string(data, "login"),
            password=Password(_string(data, "password")),
            group=_string(data, "group"),
            uuid=_string(data, "uuid"),
            fields=_fields(data),
            expired=parse_bool_string(data.get("expired")),
        )


def entries_from_response(response):
    """Extract the list of entries from a decrypted response."""
    message = response.get("message")
    if message is None and "message" not in response:
        raise InvalidResponseError()
    if not isinstance(message, dict) or "entries" not in message:
        raise InvalidResponseError()
    entries = message["entries"]
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise InvalidResponseError("entries must be a list")
    return [Entry.from_dict(item) for item in entries]