"""
PathCrypt - Mnemonic Module (BIP39 / BIP32)

Thin wrappers around the 'mnemonic' and 'bip32' libraries:
- Generate and validate BIP39 recovery phrases
- Turn a phrase into a BIP32 master key pair (base58 xprv / xpub)
- Derive child public keys
- Store a phrase and its private key on this machine, encrypted with a
  key bound to the machine id (see identity.py)

Key derivation itself is done by the libraries; nothing here reimplements
BIP32 or BIP39.
"""

import base64
import logging
from typing import Callable, Optional, Tuple

from bip32 import BIP32
from mnemonic import Mnemonic

from . import crypto
from .config import ConfigStore
from .errors import ConfigError
from .identity import machine_id, machine_key

logger = logging.getLogger(__name__)

LANGUAGE = "english"
ENTROPY_BITS = 128                  # 12 words
SEED_PASSPHRASE = "Secret Passphrase"
DEFAULT_CONFIG_NAME = "mnemonic"


def new_mnemonic() -> str:
    """
    Generate a new 12-word BIP39 mnemonic.

    Returns:
        Space separated English words
    """
    return Mnemonic(LANGUAGE).generate(strength=ENTROPY_BITS)


def is_mnemonic_valid(phrase: str) -> bool:
    """Check word list membership and the BIP39 checksum."""
    try:
        return Mnemonic(LANGUAGE).check(phrase)
    except (ValueError, LookupError):
        return False


def generate_keys(phrase: str) -> Tuple[str, str]:
    """
    Generate the BIP32 master key pair of a mnemonic.

    Args:
        phrase: BIP39 mnemonic

    Returns:
        (private_key, public_key) as base58 xprv / xpub strings

    Raises:
        ValueError: If the phrase is not a valid mnemonic
    """
    if not is_mnemonic_valid(phrase):
        raise ValueError("invalid mnemonic")
    seed = Mnemonic.to_seed(phrase, passphrase=SEED_PASSPHRASE)
    master = BIP32.from_seed(seed)
    return master.get_xpriv(), master.get_xpub()


def generate_child_key(master_key_b58: str, index: int) -> str:
    """
    Derive the public key of child ``index`` of a master key.

    Args:
        master_key_b58: Base58 xprv or xpub
        index: Child index; hardened indexes (>= 2**31) need an xprv

    Returns:
        Base58 xpub of the child
    """
    if master_key_b58[1:4] == "prv":
        master = BIP32.from_xpriv(master_key_b58)
    else:
        master = BIP32.from_xpub(master_key_b58)
    return master.get_xpub_from_path([index])


# =============================================================================
# Local storage
# =============================================================================

class MnemonicConfig:
    """
    Mnemonic and private key saved on this machine.

    Both values are encrypted with crypto.encrypt() under
    machine_key(password) before they reach the config file, so the file is
    useless on another host or without the password.

    Usage:
        phrase = new_mnemonic()
        xprv, _ = generate_keys(phrase)
        MnemonicConfig(phrase.encode(), xprv.encode()).save("myapp")

        cfg = MnemonicConfig.load("myapp")
    """

    def __init__(self, mnemonic: bytes, private_key: bytes):
        self.mnemonic = mnemonic
        self.private_key = private_key

    def __eq__(self, other):
        if not isinstance(other, MnemonicConfig):
            return NotImplemented
        return (self.mnemonic, self.private_key) == (other.mnemonic, other.private_key)

    def __repr__(self):
        return "MnemonicConfig(<hidden>)"

    def save(
        self,
        app_short_name: str,
        config_name: str = DEFAULT_CONFIG_NAME,
        password: Optional[str] = None,
        base_dir: Optional[str] = None,
        provider: Callable[[], str] = machine_id,
    ) -> None:
        """
        Encrypt and save to the user config directory.

        Args:
            app_short_name: Application folder name
            config_name: Config file name
            password: Optional password added to the machine key
            base_dir: Directory used instead of the user config directory
            provider: Machine id lookup
        """
        key = machine_key(password, provider)
        data = {
            "mnemonic": _b64(crypto.encrypt(key, self.mnemonic)),
            "private_key": _b64(crypto.encrypt(key, self.private_key)),
        }
        ConfigStore(app_short_name, config_name, base_dir).save(data)
        logger.info("saved encrypted mnemonic config for %s", app_short_name)

    @classmethod
    def load(
        cls,
        app_short_name: str,
        config_name: str = DEFAULT_CONFIG_NAME,
        password: Optional[str] = None,
        base_dir: Optional[str] = None,
        provider: Callable[[], str] = machine_id,
    ) -> "MnemonicConfig":
        """
        Load and decrypt a config saved by save().

        Raises:
            FileNotFoundError: Nothing was saved
            ConfigError: Config file is damaged
            AuthenticationFailed: Other machine or wrong password
        """
        data = ConfigStore(app_short_name, config_name, base_dir).load()
        key = machine_key(password, provider)
        try:
            mnemonic = base64.b64decode(data["mnemonic"], validate=True)
            private_key = base64.b64decode(data["private_key"], validate=True)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"invalid mnemonic config: {e}") from e
        return cls(crypto.decrypt(key, mnemonic), crypto.decrypt(key, private_key))


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')
