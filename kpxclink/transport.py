"""Locating and connecting to the KeePassXC browser socket."""

import os
import posixpath
import socket
import sys

SOCKET_NAME = "org.keepassxc.KeePassXC.BrowserServer"


class SocketNotFoundError(OSError):
    """Raised when the KeePassXC socket cannot be located."""


def _darwin_socket_path():
    tmp_dir = os.environ.get("TMPDIR")
    if tmp_dir is None:
        raise SocketNotFoundError("$TMPDIR not set, can not find socket")
    path = os.path.normpath(os.path.join(tmp_dir, SOCKET_NAME))
    if not os.path.exists(path):
        raise SocketNotFoundError(f"keepassxc socket not found '{path}'")
    return path


def _linux_socket_path():
    candidates = [
        os.environ.get("XDG_RUNTIME_DIR", ""),
        os.environ.get("TMPDIR", ""),
        posixpath.join(os.environ.get("HOME", ""), "snap/keepassxc/common"),
        f"/run/user/{os.getuid()}/",
    ]
    filename = ""
    for base in candidates:
        filename = posixpath.normpath(posixpath.join(base, SOCKET_NAME))
        try:
            os.stat(filename)
        except FileNotFoundError:
            continue
        except OSError as exc:
            raise SocketNotFoundError(f"keepassxc socket lookup error: {exc}") from exc
        break
    # The last candidate is returned when none exists; connecting reports it.
    return filename


def socket_path():
    """Return the path of the KeePassXC browser socket or named pipe."""
    if sys.platform == "win32":
        return rf"\\.\pipe\{SOCKET_NAME}_{os.environ.get('USERNAME', '')}"
    if sys.platform == "darwin":
        return _darwin_socket_path()
    return _linux_socket_path()


class _PipeConnection:
    """A Windows named pipe with the socket methods the client uses."""

    def __init__(self, path):
        self._file = open(path, "r+b", buffering=0)

    def sendall(self, data):
        self._file.write(data)

    def recv(self, size):
        return self._file.read(size)

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def connect(path):
    """Open a connection to the socket or pipe at path."""
    if sys.platform == "win32":
        return _PipeConnection(path)
    conn = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        conn.connect(path)
    except OSError:
        conn.close()
        raise
    return conn