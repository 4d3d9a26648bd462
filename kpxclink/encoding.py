"""Base64 helpers for NaCl keys and nonces."""

import base64
import binascii

from nacl.public import Box, PrivateKey
from nacl.utils import random as _random

KEY_SIZE = PrivateKey.SIZE
NONCE_SIZE = Box.NONCE_SIZE


def new_key():
    """Return a fresh random key of KEY_SIZE bytes."""
    return _random(KEY_SIZE)


def new_nonce():
    """Return a fresh random nonce of NONCE_SIZE bytes."""
    return _random(NONCE_SIZE)


def _decode(text):
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 data: {exc}") from exc


def _fit(data, size):
    """Truncate or zero-pad data to exactly size bytes."""
    return bytes(data[:size]).ljust(size, b"\0")


def nonce_to_b64(nonce):
    """Encode a nonce as standard base64."""
    return base64.b64encode(bytes(nonce)).decode("ascii")


def b64_to_nonce(text):
    """Decode base64 text into a nonce of NONCE_SIZE bytes."""
    return _fit(_decode(text), NONCE_SIZE)


def key_to_b64(key):
    """Encode a key as standard base64."""
    return base64.b64encode(bytes(key)).decode("ascii")


def b64_to_key(text):
    """Decode base64 text into a key of KEY_SIZE bytes."""
    return _fit(_decode(text), KEY_SIZE)