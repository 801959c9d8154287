"""
PathCrypt - Config store, machine identity and mnemonic tests

Run with: pytest test_mnemonic.py

The machine id and config directory are injected, so nothing here reads
the host identity or writes to the real user config directory.
"""

import json
import os

import pytest

from pathcrypt import crypto, identity
from pathcrypt.config import ConfigStore, user_config_dir
from pathcrypt.errors import AuthenticationFailed, ConfigError, MachineIdUnavailable
from pathcrypt.mnemonic import (
    MnemonicConfig,
    generate_child_key,
    generate_keys,
    is_mnemonic_valid,
    new_mnemonic,
)

APP = "pathcrypt-test"


def this_machine():
    return "4c4c4544-0042-3510-8052-b4c04f384d32"


def other_machine():
    return "00000000-0000-0000-0000-000000000000"


# =============================================================================
# Config store
# =============================================================================

def test_config_store(tmp_path):
    store = ConfigStore(APP, "settings", base_dir=str(tmp_path))
    assert store.path == os.path.join(str(tmp_path), "pathcrypt", APP, "settings.cfg")

    store.save({"name": "value", "n": 1})
    assert store.load() == {"name": "value", "n": 1}

    with open(store.path, encoding="utf-8") as f:
        assert json.load(f) == {"data": {"name": "value", "n": 1}}


def test_config_store_errors(tmp_path):
    store = ConfigStore(APP, "missing", base_dir=str(tmp_path))
    with pytest.raises(FileNotFoundError):
        store.load()

    store = ConfigStore(APP, "broken", base_dir=str(tmp_path))
    os.makedirs(os.path.dirname(store.path))
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("{not json")
    with pytest.raises(ConfigError):
        store.load()

    with open(store.path, "w", encoding="utf-8") as f:
        f.write('{"other": 1}')
    with pytest.raises(ConfigError):
        store.load()


def test_user_config_dir(monkeypatch, tmp_path):
    if os.name == "nt":
        monkeypatch.setenv("APPDATA", str(tmp_path))
        assert user_config_dir() == str(tmp_path)
    else:
        assert os.path.isabs(user_config_dir())


# =============================================================================
# Machine identity
# =============================================================================

def test_machine_key():
    key = identity.machine_key(provider=this_machine)
    assert key == crypto.hash_key(this_machine())
    assert identity.machine_key("pw", provider=this_machine) == crypto.hash_key(this_machine() + "pw")
    assert identity.machine_key(provider=other_machine) != key


def test_machine_id_unavailable(monkeypatch):
    def broken():
        raise RuntimeError("no machine id on this platform")

    monkeypatch.setattr(identity.machineid, "id", broken)
    with pytest.raises(MachineIdUnavailable):
        identity.machine_id()

    monkeypatch.setattr(identity.machineid, "id", lambda: "")
    with pytest.raises(MachineIdUnavailable):
        identity.machine_id()


# =============================================================================
# Mnemonic / HD keys
# =============================================================================

def test_new_mnemonic():
    phrase = new_mnemonic()
    assert len(phrase.split()) == 12
    assert is_mnemonic_valid(phrase)
    assert new_mnemonic() != phrase


def test_invalid_mnemonic():
    assert not is_mnemonic_valid("not a valid mnemonic at all")
    assert not is_mnemonic_valid(" ".join(["abandon"] * 12))
    with pytest.raises(ValueError):
        generate_keys("not a valid mnemonic at all")


def test_generate_keys():
    phrase = new_mnemonic()
    private_key, public_key = generate_keys(phrase)

    assert private_key.startswith("xprv")
    assert public_key.startswith("xpub")
    assert generate_keys(phrase) == (private_key, public_key)
    assert generate_keys(new_mnemonic())[0] != private_key


def test_generate_child_key():
    private_key, public_key = generate_keys(new_mnemonic())

    child = generate_child_key(private_key, 0)
    assert child.startswith("xpub")
    assert child != public_key
    assert generate_child_key(private_key, 1) != child

    # Non-hardened children can be derived from the public key alone
    assert generate_child_key(public_key, 0) == child

    # Hardened children need the private key
    assert generate_child_key(private_key, 2**31).startswith("xpub")
    with pytest.raises(Exception):
        generate_child_key(public_key, 2**31)


def test_mnemonic_config(tmp_path):
    phrase = new_mnemonic()
    private_key, _ = generate_keys(phrase)
    cfg = MnemonicConfig(phrase.encode(), private_key.encode())

    cfg.save(APP, base_dir=str(tmp_path), provider=this_machine)

    # Nothing readable on disk
    with open(ConfigStore(APP, "mnemonic", str(tmp_path)).path, encoding="utf-8") as f:
        raw = f.read()
    assert phrase not in raw
    assert private_key not in raw

    loaded = MnemonicConfig.load(APP, base_dir=str(tmp_path), provider=this_machine)
    assert loaded == cfg
    assert phrase not in repr(loaded)

    # Other machine cannot read it
    with pytest.raises(AuthenticationFailed):
        MnemonicConfig.load(APP, base_dir=str(tmp_path), provider=other_machine)


def test_mnemonic_config_password(tmp_path):
    cfg = MnemonicConfig(b"words", b"xprv-key")
    cfg.save(APP, "secured", password="pw", base_dir=str(tmp_path), provider=this_machine)

    loaded = MnemonicConfig.load(APP, "secured", password="pw",
                                 base_dir=str(tmp_path), provider=this_machine)
    assert loaded == cfg

    with pytest.raises(AuthenticationFailed):
        MnemonicConfig.load(APP, "secured", base_dir=str(tmp_path), provider=this_machine)
    with pytest.raises(AuthenticationFailed):
        MnemonicConfig.load(APP, "secured", password="wrong",
                            base_dir=str(tmp_path), provider=this_machine)


def test_mnemonic_config_damaged(tmp_path):
    ConfigStore(APP, "damaged", str(tmp_path)).save({"mnemonic": "%%%"})
    with pytest.raises(ConfigError):
        MnemonicConfig.load(APP, "damaged", base_dir=str(tmp_path), provider=this_machine)


if __name__ == "__main__":
    import sys
    sys.exit(pytest.main([__file__, "-v"]))
