"""
PathCrypt - Compression Module

gzip helpers for streams and byte buffers. Output is written with a zero
modification time, so equal input always gives equal output.
"""

import gzip
import io
import shutil
import zlib

from .errors import CompressionFailure


CHUNK_SIZE = 64 * 1024


def compress(reader, writer) -> None:
    """Read everything from ``reader`` and write it gzipped to ``writer``."""
    with gzip.GzipFile(fileobj=writer, mode="wb", mtime=0) as gz:
        shutil.copyfileobj(reader, gz, CHUNK_SIZE)


def decompress(reader, writer) -> None:
    """
    Read gzip data from ``reader`` and write the plain data to ``writer``.

    Raises:
        CompressionFailure: Input is not valid gzip data
    """
    with gzip.GzipFile(fileobj=reader, mode="rb") as gz:
        while True:
            # Only errors from the gzip side are compression failures,
            # writer errors propagate as they are
            try:
                chunk = gz.read(CHUNK_SIZE)
            except (OSError, EOFError, zlib.error) as e:
                raise CompressionFailure(f"cannot decompress data: {e}") from e
            if not chunk:
                break
            writer.write(chunk)


def compress_data(data: bytes) -> bytes:
    """Compress a byte buffer."""
    return gzip.compress(data, mtime=0)


def decompress_data(data: bytes) -> bytes:
    """
    Decompress a byte buffer produced by compress_data().

    Raises:
        CompressionFailure: Input is not valid gzip data
    """
    out = io.BytesIO()
    decompress(io.BytesIO(data), out)
    return out.getvalue()
