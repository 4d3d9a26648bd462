# kpxclink

`kpxclink` talks to a running KeePassXC instance through its browser-integration
socket: a Unix socket on Linux and macOS, a named pipe on Windows. It looks up
the logins stored for a URL and fetches the current TOTP code of an entry. After
the initial public-key exchange every request and answer is encrypted with a
NaCl box.

## Installation

```
pip install .
```

## Command line

On first use KeePassXC asks you to approve a new connection and give it a name.
The resulting association (its name and a base64 identity key) is written to
`keepassxc.keystore` in your user configuration directory and reused later:

- Linux: `$XDG_CONFIG_HOME`, or `~/.config` when that is unset
- macOS: `~/Library/Application Support`
- Windows: `%APPDATA%`

Print the first login stored for a URL, with the password masked as `*****`:

```
kpxclink get-logins https://example.com
```

Options of `get-logins`:

- `--all` – print every matching entry instead of only the first
- `--plaintext` – print the password itself; be careful
- `--json` – print a compact JSON list of objects with `name`, `pass` and `user`
  (always every match)

In the plain output, entries that KeePassXC reports as expired end with
`EXPIRED`.

Print the current TOTP code of the first entry matching a URL:

```
kpxclink get-totp https://example.com
```

When the keystore holds more than one association, pick one with
`-p NAME` / `--profile NAME`, placed before the command:

```
kpxclink --profile work get-logins https://example.com
```

Run without a command, `kpxclink` prints its help. On failure it writes the
usage line and the error message to standard error and exits with status 1;
when no entry matches the URL the message is `could not find entries for '<URL>'`.

## Library use

```python
from kpxclink.client import default_client

with default_client() as client:
    entries = client.get_logins("https://example.com")
    for entry in entries:
        print(entry.name, entry.login, entry.password)  # password prints as *****
    if entries:
        print(client.get_totp(entries[0].uuid))
```

`default_client()` loads the keystore, takes its default profile, connects,
exchanges public keys, and then either checks the stored association with
`test_associate()` or, when the profile has no key, creates a new association
and saves it to the keystore. Leaving the `with` block closes the connection.

To drive the protocol step by step, build a `Client` yourself:

```python
from kpxclink.client import Client
from kpxclink.transport import socket_path

client = Client(socket_path(), "", None)  # a fresh identity key is generated
client.connect()
client.change_public_keys()
client.associate()                        # KeePassXC asks the user to approve
name, key = client.associated_profile()
print(client.get_database_hash())
client.disconnect()
```

Each `Entry` has `name`, `login`, `password`, `group`, `uuid`, `fields` and
`expired`. The password is a `Password`, whose `str()` is `*****` and whose
`plaintext()` returns the real value; `fields` prints comma separated.

The keystore is handled by `kpxclink.keystore`: `load()` returns a `Keystore`
whose `add`, `get`, `default_profile` and `save` manage its `Profile` records.
Both `load` and `save` accept a directory to use instead of the user
configuration directory, and the file is created readable only by its owner.

Errors are raised as exceptions: keystore problems as subclasses of
`KeystoreError` (for example `TooManyProfilesError` when a profile must be named),
client problems as `ClientError`, with `KeePassXCError` when KeePassXC answers a
request with an error, and `InvalidResponseError` for answers lacking the
expected content.

## What it does not do

`kpxclink` only reads: it fetches logins, TOTP codes and the database hash. It
does not generate passwords, create or update entries, list or create groups,
or lock the database.

## Running the tests

```
pip install ".[test]"
pytest
```