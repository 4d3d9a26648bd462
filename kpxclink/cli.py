"""Command line interface for querying KeePassXC over its browser socket."""

import argparse
import json
import sys

from .client import Client, ClientError
from .keystore import (
    KeystoreError,
    Profile,
    ProfileNotFoundError,
    TooManyProfilesError,
    load,
)
from .transport import socket_path


def initialize_client(profile_name="", config_dir=None):
    """Return a connected, associated client for the selected keystore profile.

    When the keystore holds no usable key, a new association is made and
    stored in the keystore.
    """
    path = socket_path()
    store = load(config_dir)

    key = None
    if len(store.profiles) == 1:
        key = store.profiles[0].nacl_key()
        profile_name = store.profiles[0].name
    elif len(store.profiles) > 1:
        if not profile_name:
            raise TooManyProfilesError()
        for profile in store.profiles:
            if profile.name == profile_name:
                key = profile.nacl_key()
        if key is None:
            raise ProfileNotFoundError(f"could not find profile '{profile_name}'")

    client = Client(path, profile_name, key)
    client.connect()
    try:
        client.change_public_keys()
        if key is None:
            client.associate()
            name, encoded_key = client.associated_profile()
            store.add(Profile(name=name, key=encoded_key))
            store.save(config_dir)
        else:
            client.test_associate()
    except BaseException:
        client.disconnect()
        raise
    return client


def _go_json(value):
    """Serialise compactly, escaping HTML-sensitive characters."""
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


def format_logins(entries, plaintext=False, show_all=False, as_json=False):
    """Render entries as the get-logins command prints them, newline terminated."""

    def password(entry):
        return entry.password.plaintext() if plaintext else str(entry.password)

    if as_json:
        records = [
            {"name": entry.name, "pass": password(entry), "user": entry.login}
            for entry in entries
        ]
        return _go_json(records) + "\n"

    shown = entries if show_all else entries[:1]
    lines = []
    for entry in shown:
        line = f"{entry.name} {entry.login} {password(entry)}"
        if entry.expired:
            line += " EXPIRED"
        lines.append(line + "\n")
    return "".join(lines)


def _matching_entries(client, url):
    entries = client.get_logins(url)
    if not entries:
        raise ClientError(f"could not find entries for '{url}'")
    return entries


def _run_get_logins(args, out):
    with initialize_client(args.profile) as client:
        entries = _matching_entries(client, args.url)
    out.write(format_logins(entries, args.plaintext, args.all, args.json))


def _run_get_totp(args, out):
    with initialize_client(args.profile) as client:
        entries = _matching_entries(client, args.url)
        totp = client.get_totp(entries[0].uuid)
    out.write(totp + "\n")


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="kpxclink",
        description="interact with keepassxc via unix-socket",
    )
    parser.add_argument(
        "-p",
        "--profile",
        default="",
        help="Only necessary if keystore contains multiple profiles",
    )
    commands = parser.add_subparsers(dest="command")

    logins = commands.add_parser("get-logins", help="query info for the specified url")
    logins.add_argument("url", metavar="URL")
    logins.add_argument(
        "--plaintext", action="store_true", help="print out the password - BE CAREFUL"
    )
    logins.add_argument(
        "--all",
        action="store_true",
        help="show all matches otherwise only the first will be printed",
    )
    logins.add_argument("--json", action="store_true", help="format output as json")
    logins.set_defaults(handler=_run_get_logins, subparser=logins)

    totp = commands.add_parser("get-totp", help="get TOTP for the specified url")
    totp.add_argument("url", metavar="URL")
    totp.set_defaults(handler=_run_get_totp, subparser=totp)

    return parser


def main(argv=None):
    """Run the command line interface and return the exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    try:
        args.handler(args, sys.stdout)
    except (ClientError, KeystoreError, OSError, ValueError) as exc:
        message = str(exc)
        if not message.startswith("error"):
            args.subparser.print_usage(sys.stderr)
        print(message, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())