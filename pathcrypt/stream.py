"""
PathCrypt - Stream Cipher Module

AES-CTR encryption of byte streams of any length with constant memory use.

Stream format:

    IV (16 bytes) || ciphertext (same length as plaintext)

There is NO authentication tag: flipped ciphertext bits flip the same
plaintext bits and nothing detects it. Use crypto.encrypt() for data that
must be tamper-evident, or wrap the plaintext in an authenticated envelope
before streaming it.

Usage:
    with open("data.bin", "rb") as src, open("data.enc", "wb") as dst:
        encrypt_stream(src, dst, key)

    with open("data.enc", "rb") as src:
        reader = DecryptReader(src, key)
        first = reader.read(100)
"""

import io
import logging

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from . import crypto
from .errors import TruncatedStream

logger = logging.getLogger(__name__)

IV_SIZE = algorithms.AES.block_size // 8   # 16 bytes
CHUNK_SIZE = 64 * 1024


def _keystream(key: bytes, iv: bytes):
    """Build a CTR context; encrypting and decrypting are the same XOR."""
    return Cipher(algorithms.AES(key), modes.CTR(iv)).encryptor()


class EncryptWriter(io.RawIOBase):
    """
    Writable stream that encrypts everything written to it into ``sink``.

    The IV is written to the sink as soon as the writer is created. Closing
    the writer does not close the sink.

    Args:
        sink: Binary file-like object with write()
        key: 16, 24 or 32-byte key
    """

    def __init__(self, sink, key: bytes):
        super().__init__()
        self._sink = sink
        crypto.check_key(key)
        iv = crypto.random_bytes(IV_SIZE)
        self._ctx = _keystream(key, iv)
        _write_all(self._sink, iv)
        logger.debug("stream encryption started")

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("write to closed EncryptWriter")
        data = bytes(data)
        if data:
            _write_all(self._sink, self._ctx.update(data))
        return len(data)

    def flush(self) -> None:
        super().flush()
        if not getattr(self._sink, "closed", False) and hasattr(self._sink, "flush"):
            self._sink.flush()


class DecryptReader(io.RawIOBase):
    """
    Readable stream that decrypts data read from ``source``.

    The IV is read from the front of the source when the reader is created.

    Args:
        source: Binary file-like object with read()
        key: Same key used by EncryptWriter

    Raises:
        TruncatedStream: Source ends before a full IV
    """

    def __init__(self, source, key: bytes):
        super().__init__()
        crypto.check_key(key)
        iv = _read_exactly(source, IV_SIZE)
        if len(iv) < IV_SIZE:
            raise TruncatedStream(
                f"stream too short: got {len(iv)} of {IV_SIZE} IV bytes"
            )
        self._ctx = _keystream(key, iv)
        self._source = source
        logger.debug("stream decryption started")

    def readable(self) -> bool:
        return True

    def readinto(self, buffer):
        data = self._source.read(len(buffer))
        if data is None:
            return None     # non-blocking source has nothing yet
        if not data:
            return 0
        plain = self._ctx.update(data)
        buffer[:len(plain)] = plain
        return len(plain)


def _read_exactly(source, size: int) -> bytes:
    """Read up to ``size`` bytes, looping over short reads until EOF."""
    buf = b""
    while len(buf) < size:
        chunk = source.read(size - len(buf))
        if not chunk:
            break
        buf += chunk
    return buf


def _write_all(sink, data: bytes) -> None:
    """
    Write all of ``data``, looping over short writes.

    Raw sinks (unbuffered files, pipes, sockets) may accept only part of
    a buffer per call.

    Raises:
        BlockingIOError: A non-blocking sink accepted nothing
    """
    view = memoryview(data)
    while view:
        written = sink.write(view)
        if written is None:
            raise BlockingIOError(0, "sink would block", len(data) - len(view))
        view = view[written:]


# =============================================================================
# Helpers
# =============================================================================

def encrypt_stream(src, dst, key: bytes) -> int:
    """
    Encrypt all of ``src`` into ``dst``.

    Returns:
        Number of plaintext bytes copied (the IV is not counted)
    """
    writer = EncryptWriter(dst, key)
    total = 0
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            break
        total += writer.write(chunk)
    writer.flush()
    return total


def decrypt_stream(src, dst, key: bytes) -> int:
    """
    Decrypt all of ``src`` into ``dst``.

    Returns:
        Number of plaintext bytes written
    """
    reader = DecryptReader(src, key)
    total = 0
    while True:
        chunk = reader.read(CHUNK_SIZE)
        if not chunk:
            break
        _write_all(dst, chunk)
        total += len(chunk)
    return total


def encrypt_file(in_path: str, out_path: str, key: bytes) -> int:
    """Encrypt the file at ``in_path`` into ``out_path``."""
    with open(in_path, "rb") as src, open(out_path, "wb") as dst:
        return encrypt_stream(src, dst, key)


def decrypt_file(in_path: str, out_path: str, key: bytes) -> int:
    """Decrypt the file at ``in_path`` into ``out_path``."""
    with open(in_path, "rb") as src, open(out_path, "wb") as dst:
        return decrypt_stream(src, dst, key)
