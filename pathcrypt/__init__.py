"""
PathCrypt - Path and Payload Encryption Toolkit

Symmetric encryption for byte payloads, streams and object-storage paths.

Key Features:
- One-shot: AES-GCM containers (nonce || ciphertext || tag)
- Streaming: AES-CTR with constant memory (IV || ciphertext, no tag)
- Paths: each segment compressed, encrypted and base64 escaped on its own,
  folder structure preserved
- Legacy: repeating-key XOR for old paths, opt-in only
- Keys: password hash, random keys, scrypt, BIP39/BIP32 helpers

Components:
- crypto.py: Key derivation, AES-GCM, legacy XOR
- stream.py: Streaming AES-CTR reader/writer
- compress.py: gzip helpers
- filename.py: Path segment codec
- config.py: Per-user JSON config files
- identity.py: Machine-bound keys
- mnemonic.py: BIP39 mnemonics and BIP32 keys

Usage:
    from pathcrypt import PathCodec, hash_key

    codec = PathCodec(hash_key("very strong key"))
    enc = codec.encrypt("bucket/folder/file.txt")
    codec.decrypt(enc)
"""

from .crypto import (
    hash_key,
    generate_key,
    generate_salt,
    derive_key,
    encrypt,
    decrypt,
    encrypt_xor,
    decrypt_xor,
)
from .errors import (
    CryptError,
    InvalidKeyLength,
    RandomSourceUnavailable,
    CiphertextTooShort,
    AuthenticationFailed,
    TruncatedStream,
    CompressionFailure,
    PathNotEncrypted,
    ConfigError,
    MachineIdUnavailable,
)
from .stream import (
    EncryptWriter,
    DecryptReader,
    encrypt_stream,
    decrypt_stream,
    encrypt_file,
    decrypt_file,
)
from .filename import (
    Cipher,
    CodecConfig,
    PathCodec,
    PathDecryption,
    SegmentKind,
    SegmentResult,
)

__version__ = "0.3.0"
__author__ = "PathCrypt Team"
