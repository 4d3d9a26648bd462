"""Persistent store of association profiles."""

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .encoding import b64_to_key

FILENAME = "keepassxc.keystore"


class KeystoreError(Exception):
    """Base error of the keystore."""

    default_message = "keystore error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class EmptyKeystoreError(KeystoreError):
    default_message = "keystore does not contain any profiles"


class TooManyProfilesError(KeystoreError):
    default_message = "keystore has multiple profiles, please specify the one to use"


class DefaultProfileDoesNotExistError(KeystoreError):
    default_message = "default profile does not exist"


class ProfileExistsError(KeystoreError):
    default_message = "profile already exists"


class ProfileNotFoundError(KeystoreError):
    default_message = "profile not found"


@dataclass
class Profile:
    """A named association with its base64 identity key."""

    name: str = ""
    key: str = ""

    def nacl_key(self):
        """Return the decoded key, or None when no key is stored."""
        if not self.key:
            return None
        return b64_to_key(self.key)


@dataclass
class Keystore:
    """The profiles known to this application."""

    default: str = ""
    profiles: list = field(default_factory=list)
    _default_profile: Profile = field(default=None, repr=False, compare=False)

    def add(self, profile):
        """Append a profile unless one with its name is already found."""
        try:
            existing = self.get(profile.name)
        except KeystoreError:
            existing = None
        if existing is not None:
            raise ProfileExistsError(f"profile named '{profile.name}' already exists")
        self.profiles.append(profile)

    def get(self, name=""):
        """Look up a profile by name; an empty name works for a single profile."""
        if not self.profiles:
            raise EmptyKeystoreError()
        if len(self.profiles) == 1:
            profile = self.profiles[0]
            if not name or profile.name == name:
                return profile
        else:
            if not name:
                raise TooManyProfilesError()
            for profile in self.profiles:
                if profile.name == name:
                    return profile
        raise ProfileNotFoundError(f"profile named '{name}' not found")

    def save(self, config_dir=None):
        """Write the keystore to the configuration directory, readable only by the owner."""
        directory = Path(config_dir) if config_dir is not None else Path(user_config_dir())
        content = json.dumps(
            {
                "default": self.default,
                "profiles": [{"name": p.name, "key": p.key} for p in self.profiles],
            },
            separators=(",", ":"),
        ).encode("utf-8")
        fd = os.open(directory / FILENAME, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)

    def default_profile(self):
        """Return the default profile, or an empty one when none is set."""
        if self._default_profile is not None:
            return self._default_profile
        if len(self.profiles) > 1:
            raise TooManyProfilesError()
        return Profile()


def user_config_dir():
    """Return the user's configuration directory for this platform."""
    if sys.platform == "win32":
        directory = os.environ.get("APPDATA", "")
        if not directory:
            raise KeystoreError("%AppData% is not defined")
        return directory
    if sys.platform == "darwin":
        home = os.environ.get("HOME", "")
        if not home:
            raise KeystoreError("$HOME is not defined")
        return home + "/Library/Application Support"
    directory = os.environ.get("XDG_CONFIG_HOME", "")
    if not directory:
        home = os.environ.get("HOME", "")
        if not home:
            raise KeystoreError("neither $XDG_CONFIG_HOME nor $HOME are defined")
        return home + "/.config"
    if not os.path.isabs(directory):
        raise KeystoreError("path in $XDG_CONFIG_HOME is relative")
    return directory


def load(config_dir=None):
    """Read the keystore, returning an empty one when no file exists."""
    directory = Path(config_dir) if config_dir is not None else Path(user_config_dir())
    try:
        content = (directory / FILENAME).read_bytes()
    except FileNotFoundError:
        return Keystore()

    data = json.loads(content)
    if not isinstance(data, dict):
        raise KeystoreError("keystore file must hold an object")
    profiles = [
        Profile(name=item.get("name") or "", key=item.get("key") or "")
        for item in data.get("profiles") or []
        if isinstance(item, dict)
    ]
    store = Keystore(default=data.get("default") or "", profiles=profiles)

    if store.default:
        for profile in store.profiles:
            if profile.name == store.default:
                store._default_profile = profile
        if store._default_profile is None:
            raise DefaultProfileDoesNotExistError()

    if not store.default and len(store.profiles) == 1:
        store._default_profile = store.profiles[0]
        store.default = store._default_profile.name

    return store