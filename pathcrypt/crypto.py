"""
PathCrypt - Cryptography Module

This file contains the one-shot cryptographic operations of the package:
- Key derivation (password hash, random key, salted scrypt)
- AES-GCM authenticated encryption of a byte buffer
- Repeating-key XOR kept for reading old encrypted paths

Container format produced by encrypt():

    nonce (12 bytes) || ciphertext (n bytes) || tag (16 bytes)

The nonce length is fixed by AES-GCM, so the container carries no length
fields. Streaming encryption lives in stream.py.
"""

import os
import hashlib

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import (
    InvalidKeyLength,
    RandomSourceUnavailable,
    CiphertextTooShort,
    AuthenticationFailed,
)


# =============================================================================
# Configuration
# =============================================================================

KEY_SIZE = 32            # 256-bit key
AES_KEY_SIZES = (16, 24, 32)
NONCE_SIZE = 12          # 96-bit nonce for AES-GCM
TAG_SIZE = 16            # 128-bit authentication tag
SALT_SIZE = 16

# scrypt parameters for derive_key()
# N = CPU/memory cost (power of 2), r = block size, p = parallelization
SCRYPT_N = 2**17         # 131072 - uses ~128 MB RAM
SCRYPT_R = 8
SCRYPT_P = 1


# =============================================================================
# Key Derivation
# =============================================================================

def random_bytes(size: int) -> bytes:
    """
    Read ``size`` bytes from the OS entropy source.

    Raises:
        RandomSourceUnavailable: If the source cannot be read
    """
    try:
        return os.urandom(size)
    except (NotImplementedError, OSError) as e:
        raise RandomSourceUnavailable(f"cannot read {size} random bytes: {e}") from e


def hash_key(password: str) -> bytes:
    """
    Turn a password into a 32-byte key with SHA-256.

    The same password always gives the same key. There is no salt, so use
    derive_key() instead when a salt can be stored next to the data.

    Args:
        password: Human-memorable secret

    Returns:
        32-byte key
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def generate_key() -> bytes:
    """Generate a random 32-byte key."""
    return random_bytes(KEY_SIZE)


def generate_salt() -> bytes:
    """Generate a random 16-byte salt for derive_key()."""
    return random_bytes(SALT_SIZE)


def derive_key(password: str, salt: bytes) -> bytes:
    """
    Derive a key from a password and salt using scrypt.

    Args:
        password: Human-memorable secret
        salt: Random salt (stored with the data, NOT secret)

    Returns:
        32-byte key
    """
    kdf = Scrypt(
        salt=salt,
        length=KEY_SIZE,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return kdf.derive(password.encode('utf-8'))


def check_key(key: bytes) -> None:
    """Raise InvalidKeyLength unless ``key`` is an AES-128/192/256 key."""
    if len(key) not in AES_KEY_SIZES:
        raise InvalidKeyLength(
            f"invalid AES key size {len(key)}, expected one of {AES_KEY_SIZES}"
        )


# =============================================================================
# Encryption (AES-GCM)
# =============================================================================

def encrypt(key: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt data with AES-GCM.

    A fresh random nonce is generated for every call and prepended to the
    output, so the same plaintext never encrypts to the same container.

    Args:
        key: 16, 24 or 32-byte key
        plaintext: Data to encrypt (may be empty)

    Returns:
        nonce || ciphertext || tag

    Raises:
        InvalidKeyLength: Key is not an AES key
        RandomSourceUnavailable: Nonce could not be generated
    """
    check_key(key)
    nonce = random_bytes(NONCE_SIZE)

    # AESGCM appends the 16-byte tag to the ciphertext
    aesgcm = AESGCM(key)
    return nonce + aesgcm.encrypt(nonce, plaintext, None)


def decrypt(key: bytes, container: bytes) -> bytes:
    """
    Decrypt a container produced by encrypt().

    Args:
        key: Same key used for encryption
        container: nonce || ciphertext || tag

    Returns:
        Plaintext bytes

    Raises:
        InvalidKeyLength: Key is not an AES key
        CiphertextTooShort: Container is shorter than the nonce
        AuthenticationFailed: Tampered data or wrong key
    """
    check_key(key)
    if len(container) < NONCE_SIZE:
        raise CiphertextTooShort(
            f"ciphertext too short: {len(container)} < {NONCE_SIZE} bytes"
        )

    nonce, ciphertext = container[:NONCE_SIZE], container[NONCE_SIZE:]

    aesgcm = AESGCM(key)
    try:
        return aesgcm.decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise AuthenticationFailed("message authentication failed") from e


# =============================================================================
# Legacy XOR
# =============================================================================

def encrypt_xor(key: bytes, data: bytes) -> bytes:
    """
    XOR ``data`` with ``key`` repeated to its length.

    NOT ENCRYPTION: there is no authentication and a single known plaintext
    reveals the key. Kept only to read and write paths encoded by the legacy
    scheme; PathCodec uses it only when Cipher.XOR is chosen explicitly.

    Raises:
        InvalidKeyLength: Key is empty
    """
    if not key:
        raise InvalidKeyLength("XOR key must not be empty")
    klen = len(key)
    return bytes(b ^ key[i % klen] for i, b in enumerate(data))


def decrypt_xor(key: bytes, data: bytes) -> bytes:
    """Reverse encrypt_xor(); XOR is its own inverse."""
    return encrypt_xor(key, data)
