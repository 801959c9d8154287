"""
PathCrypt - Errors

Every failure raised by the package derives from CryptError, so callers can
catch the whole family with one except clause or pick individual cases.
"""


class CryptError(Exception):
    """Base class for all pathcrypt errors."""


class InvalidKeyLength(CryptError, ValueError):
    """Key size is not accepted by the cipher."""


class RandomSourceUnavailable(CryptError):
    """The system entropy source could not be read."""


class CiphertextTooShort(CryptError):
    """Container is shorter than its nonce."""


class AuthenticationFailed(CryptError):
    """
    GCM tag did not verify.

    Raised for both tampered data and a wrong key; the two cases cannot be
    told apart.
    """


class TruncatedStream(CryptError):
    """Stream ended before a full IV could be read."""


class CompressionFailure(CryptError):
    """Data could not be decompressed."""


class PathNotEncrypted(CryptError):
    """
    No segment of a path could be decrypted.

    The path is still returned, unchanged, in the ``path`` attribute.
    """

    def __init__(self, path: str):
        super().__init__("path is not encrypted")
        self.path = path


class ConfigError(CryptError):
    """Config file exists but cannot be parsed."""


class MachineIdUnavailable(CryptError):
    """Machine identity could not be read on this host."""
