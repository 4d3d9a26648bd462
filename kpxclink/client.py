"""Client for the KeePassXC browser integration protocol."""

import base64
import binascii
import json

from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey

from .encoding import (
    NONCE_SIZE,
    b64_to_key,
    key_to_b64,
    new_key,
    new_nonce,
    nonce_to_b64,
)
from .keystore import load
from .transport import connect, socket_path
from .types import InvalidResponseError, entries_from_response

APPLICATION_NAME = "keepassxc-go"
_READ_SIZE = 4096


class ClientError(Exception):
    """Base error of the KeePassXC client."""


class UnspecifiedSocketPathError(ClientError):
    """Raised when connecting without a socket path."""

    def __init__(self, message="unspecified socket path"):
        super().__init__(message)


class InvalidPeerKeyError(ClientError):
    """Raised when an encrypted exchange is attempted before keys were swapped."""

    def __init__(self, message="invalid peer key"):
        super().__init__(message)


class KeePassXCError(ClientError):
    """An error reported by KeePassXC itself."""

    def __init__(self, code, message):
        self.code = code
        self.message = message
        text = message if code is None else f"{code} {message}"
        super().__init__(text)


def _b64decode(text):
    if not isinstance(text, str):
        raise InvalidResponseError("response field must be a base64 string")
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise InvalidResponseError(f"invalid base64 data: {exc}") from exc


class Client:
    """A connection to KeePassXC, associated under a name and identity key."""

    def __init__(
        self,
        socket_path,
        associated_name="",
        associated_key=None,
        application_name=APPLICATION_NAME,
    ):
        self.socket_path = socket_path
        self.application_name = application_name
        self.associated_name = associated_name
        self._associated_key = bytes(associated_key) if associated_key else new_key()
        self._private_key = PrivateKey(new_key())
        self._public_key = bytes(self._private_key.public_key)
        self._peer_key = None
        self._socket = None
        self.id = application_name + nonce_to_b64(new_nonce())

    def __enter__(self):
        if self._socket is None:
            self.connect()
        return self

    def __exit__(self, *args):
        self.disconnect()

    def associated_profile(self):
        """Return the associated name and the base64 identity key."""
        return self.associated_name, key_to_b64(self._associated_key)

    def connect(self):
        """Open the connection to the KeePassXC socket."""
        if not self.socket_path:
            raise UnspecifiedSocketPathError()
        self._socket = connect(self.socket_path)

    def disconnect(self):
        """Close the connection if it is open."""
        if self._socket is not None:
            try:
                self._socket.close()
            finally:
                self._socket = None

    def _box(self):
        if not self._peer_key:
            raise InvalidPeerKeyError()
        return Box(self._private_key, PublicKey(self._peer_key))

    def _receive(self):
        buffer = b""
        while True:
            chunk = self._socket.recv(_READ_SIZE)
            if not chunk:
                raise ClientError("connection closed by KeePassXC")
            buffer += chunk
            try:
                return json.loads(buffer)
            except ValueError:
                continue

    def _send(self, message, encrypted):
        if encrypted:
            box = self._box()
            sealed = box.encrypt(
                json.dumps(message, sort_keys=True, separators=(",", ":")).encode("utf-8")
            )
            message = {
                "action": message["action"],
                "message": base64.b64encode(sealed[NONCE_SIZE:]).decode("ascii"),
                "nonce": base64.b64encode(sealed[:NONCE_SIZE]).decode("ascii"),
            }
        else:
            message = dict(message, nonce=nonce_to_b64(new_nonce()))
        message["clientID"] = self.id

        if self._socket is None:
            raise ClientError("not connected")
        self._socket.sendall(
            json.dumps(message, sort_keys=True, separators=(",", ":")).encode("utf-8")
        )

        response = self._receive()
        if not isinstance(response, dict):
            raise InvalidResponseError("response must be an object")
        if "error" in response:
            raise KeePassXCError(response.get("errorCode"), str(response["error"]))

        if encrypted:
            if "nonce" not in response or "message" not in response:
                raise InvalidResponseError("encrypted response lacks nonce or message")
            nonce = _b64decode(response["nonce"])
            ciphertext = _b64decode(response["message"])
            try:
                plain = box.decrypt(ciphertext, nonce)
            except (CryptoError, ValueError) as exc:
                raise ClientError(f"could not decrypt response: {exc}") from exc
            inner = json.loads(plain)
            if not isinstance(inner, dict):
                raise InvalidResponseError("decrypted message must be an object")
            response["message"] = inner
        return response

    @staticmethod
    def _message(response):
        message = response.get("message")
        return message if isinstance(message, dict) else {}

    def change_public_keys(self):
        """Exchange public keys with KeePassXC."""
        response = self._send(
            {"action": "change-public-keys", "publicKey": key_to_b64(self._public_key)},
            encrypted=False,
        )
        peer_key = response.get("publicKey")
        if not isinstance(peer_key, str):
            raise ClientError("change-public-keys failed")
        self._peer_key = b64_to_key(peer_key)

    def get_database_hash(self):
        """Return the hash identifying the open database."""
        response = self._send({"action": "get-databasehash"}, encrypted=True)
        digest = self._message(response).get("hash")
        if not isinstance(digest, str):
            raise ClientError("get-databasehash failed")
        return digest

    def associate(self):
        """Ask KeePassXC to associate this client, storing the name it assigns."""
        response = self._send(
            {
                "action": "associate",
                "key": key_to_b64(self._public_key),
                "idKey": key_to_b64(self._associated_key),
            },
            encrypted=True,
        )
        name = self._message(response).get("id")
        if not isinstance(name, str):
            raise ClientError("associate failed")
        self.associated_name = name

    def test_associate(self):
        """Check that the stored association is still accepted."""
        self._send(
            {
                "action": "test-associate",
                "key": key_to_b64(self._associated_key),
                "id": self.associated_name,
            },
            encrypted=True,
        )

    def get_logins(self, url):
        """Return the entries that match url."""
        response = self._send(
            {
                "action": "get-logins",
                "url": url,
                "keys": [
                    {
                        "id": self.associated_name,
                        "key": key_to_b64(self._associated_key),
                    }
                ],
            },
            encrypted=True,
        )
        return entries_from_response(response)

    def get_totp(self, uuid):
        """Return the current TOTP code of the entry with uuid."""
        response = self._send({"action": "get-totp", "uuid": uuid}, encrypted=True)
        message = response.get("message")
        if not isinstance(message, dict):
            raise InvalidResponseError()
        success = message.get("success")
        if not isinstance(success, str):
            raise InvalidResponseError()
        if success != "true":
            raise ClientError(f"failed to get TOTP for {uuid}")
        totp = message.get("totp")
        if not isinstance(totp, str):
            raise InvalidResponseError()
        return totp


def default_client(config_dir=None):
    """Connect using the keystore's default profile, associating when it has no key."""
    store = load(config_dir)
    profile = store.default_profile()
    client = Client(socket_path(), profile.name, profile.nacl_key())
    client.connect()
    try:
        client.change_public_keys()
        if profile.nacl_key() is None:
            client.associate()
            profile.name, profile.key = client.associated_profile()
            store.add(profile)
            store.save(config_dir)
        else:
            client.test_associate()
    except BaseException:
        client.disconnect()
        raise
    return client