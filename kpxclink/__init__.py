"""Client for the KeePassXC browser-integration protocol, with a command-line tool for logins and TOTP codes."""

__version__ = "0.1.0"
__all__ = ["cli", "client", "encoding", "keystore", "transport", "types"]