"""
PathCrypt - Path Segment Codec

Encrypts each segment of an object-storage style path on its own, so the
encrypted path keeps the same folder structure:

    photos/2024/beach.jpg  ->  photos/<enc "2024">/<enc "beach.jpg">

Per segment, when encrypting:
    1. Skip empty segments, and the first segment unless encrypt_first is set
    2. Frame: 1 marker byte + raw UTF-8, or + gzip data if that is shorter
       (undecodable file name bytes survive as surrogate escapes, as with
       os.fsencode/os.fsdecode)
    3. Encrypt the frame (AES-GCM, or legacy XOR when asked for)
    4. Base64 encode and replace '/' with '_'

Decrypting reverses the steps. A segment that does not decode or does not
decrypt is kept as it is, so paths that mix plain and encrypted segments
still come back whole. If not a single segment decrypts, decrypt() raises
PathNotEncrypted; decrypt_segments() returns the per-segment results
instead of raising.

Codecs with different keys or configs cannot read each other's paths. GCM
and XOR encoded paths are mutually unreadable.
"""

import base64
import binascii
import enum
import logging
import string
from dataclasses import dataclass
from typing import Tuple

from . import crypto
from .compress import compress_data, decompress_data
from .errors import (
    CryptError,
    CompressionFailure,
    InvalidKeyLength,
    PathNotEncrypted,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

MARKER_RAW = b"\x00"
MARKER_GZIP = b"\x01"

# Characters an encoded segment can contain
ESCAPED_ALPHABET = frozenset(string.ascii_letters + string.digits + "+=_")


class Cipher(enum.Enum):
    """Cipher applied to each path segment."""
    GCM = "gcm"
    XOR = "xor"     # legacy, not cryptographically secure


@dataclass(frozen=True)
class CodecConfig:
    """
    Settings of a PathCodec. Paths must be decrypted with the same config
    they were encrypted with.

    Attributes:
        separator: Segment delimiter
        compress: Gzip segments when that makes them shorter
        encrypt_first: Encrypt the first segment too (e.g. the bucket name)
        cipher: Cipher.GCM, or Cipher.XOR for legacy paths
    """
    separator: str = "/"
    compress: bool = True
    encrypt_first: bool = False
    cipher: Cipher = Cipher.GCM

    def __post_init__(self):
        if not self.separator:
            raise ValueError("separator must not be empty")
        if ESCAPED_ALPHABET.intersection(self.separator):
            raise ValueError(
                f"separator {self.separator!r} clashes with the encoded segment alphabet"
            )
        if not isinstance(self.cipher, Cipher):
            raise ValueError(f"unknown cipher {self.cipher!r}")


# =============================================================================
# Decryption results
# =============================================================================

class SegmentKind(enum.Enum):
    SKIPPED = "skipped"        # not subject to encryption
    DECRYPTED = "decrypted"
    LITERAL = "literal"        # did not decode or decrypt, kept as is
    MALFORMED = "malformed"    # decrypted but payload unreadable, kept as is


@dataclass(frozen=True)
class SegmentResult:
    """
    Attributes:
        kind: What happened to the segment
        text: Plaintext if DECRYPTED, otherwise the segment unchanged
        authenticated: The cipher verified the segment (GCM tag matched)
    """
    kind: SegmentKind
    text: str
    authenticated: bool = False


@dataclass(frozen=True)
class PathDecryption:
    """Outcome of decrypting every segment of one path."""
    segments: Tuple[SegmentResult, ...]
    separator: str = "/"

    @property
    def path(self) -> str:
        return self.separator.join(s.text for s in self.segments)

    @property
    def encrypted(self) -> bool:
        """
        True if at least one segment was genuinely decrypted: either
        DECRYPTED, or MALFORMED after passing GCM authentication.
        """
        return any(
            s.kind is SegmentKind.DECRYPTED
            or (s.kind is SegmentKind.MALFORMED and s.authenticated)
            for s in self.segments
        )


# =============================================================================
# Codec
# =============================================================================

class PathCodec:
    """
    Encrypts and decrypts paths segment by segment.

    Usage:
        codec = PathCodec.from_password("very strong key")
        enc = codec.encrypt("bucket/folder/file.txt")
        codec.decrypt(enc)  # "bucket/folder/file.txt"

    Args:
        key: AES key (16, 24 or 32 bytes); any non-empty key for Cipher.XOR
        config: CodecConfig, defaults to CodecConfig()
    """

    def __init__(self, key: bytes, config: CodecConfig = None):
        self.config = config or CodecConfig()
        if self.config.cipher is Cipher.GCM:
            crypto.check_key(key)
        elif not key:
            raise InvalidKeyLength("XOR key must not be empty")
        self._key = key

    @classmethod
    def from_password(cls, password: str, **options) -> "PathCodec":
        """Create a codec keyed by hash_key(password); options go to CodecConfig."""
        return cls(crypto.hash_key(password), CodecConfig(**options))

    # -------------------------------------------------------------------------
    # Encrypt
    # -------------------------------------------------------------------------

    def encrypt(self, path: str) -> str:
        """Encrypt every payload segment of ``path``."""
        parts = path.split(self.config.separator)
        return self.config.separator.join(
            p if self._is_skipped(i, p) else self._encrypt_segment(p)
            for i, p in enumerate(parts)
        )

    def _encrypt_segment(self, segment: str) -> str:
        data = self._frame(segment.encode('utf-8', 'surrogateescape'))
        if self.config.cipher is Cipher.XOR:
            ciphertext = crypto.encrypt_xor(self._key, data)
        else:
            ciphertext = crypto.encrypt(self._key, data)
        return base64.b64encode(ciphertext).decode('ascii').replace("/", "_")

    def _frame(self, raw: bytes) -> bytes:
        if self.config.compress:
            packed = compress_data(raw)
            if len(packed) < len(raw):
                return MARKER_GZIP + packed
        return MARKER_RAW + raw

    # -------------------------------------------------------------------------
    # Decrypt
    # -------------------------------------------------------------------------

    def decrypt(self, path: str) -> str:
        """
        Decrypt every payload segment of ``path``.

        Raises:
            PathNotEncrypted: No segment could be decrypted. The path,
                unchanged, is available as the exception's ``path``.
        """
        result = self.decrypt_segments(path)
        if not result.encrypted:
            raise PathNotEncrypted(result.path)
        return result.path

    def decrypt_segments(self, path: str) -> PathDecryption:
        """Decrypt ``path`` and report what happened to each segment."""
        parts = path.split(self.config.separator)
        segments = tuple(
            SegmentResult(SegmentKind.SKIPPED, p) if self._is_skipped(i, p)
            else self._decrypt_segment(i, p)
            for i, p in enumerate(parts)
        )
        return PathDecryption(segments, self.config.separator)

    def _decrypt_segment(self, index: int, segment: str) -> SegmentResult:
        try:
            ciphertext = base64.b64decode(segment.replace("_", "/"), validate=True)
        except (binascii.Error, ValueError):
            logger.debug("segment %d is not base64, keeping it as is", index)
            return SegmentResult(SegmentKind.LITERAL, segment)

        try:
            if self.config.cipher is Cipher.XOR:
                data = crypto.decrypt_xor(self._key, ciphertext)
            else:
                data = crypto.decrypt(self._key, ciphertext)
        except CryptError as e:
            logger.debug("segment %d does not decrypt (%s), keeping it as is",
                         index, type(e).__name__)
            return SegmentResult(SegmentKind.LITERAL, segment)

        authenticated = self.config.cipher is Cipher.GCM
        try:
            return SegmentResult(SegmentKind.DECRYPTED, self._unframe(data), authenticated)
        except (CompressionFailure, ValueError) as e:
            logger.warning("segment %d decrypted to an unreadable payload (%s)",
                           index, type(e).__name__)
            return SegmentResult(SegmentKind.MALFORMED, segment, authenticated)

    def _unframe(self, data: bytes) -> str:
        marker, body = data[:1], data[1:]
        if marker == MARKER_GZIP:
            body = decompress_data(body)
        elif marker != MARKER_RAW:
            raise ValueError(f"unknown segment marker {marker!r}")
        return body.decode('utf-8', 'surrogateescape')

    def _is_skipped(self, index: int, segment: str) -> bool:
        return not segment or (index == 0 and not self.config.encrypt_first)
