"""
PathCrypt - Machine Identity

Binds locally stored secrets to this host: the key is the hash of the
platform machine id plus an optional password. The machine id lookup is
passed in as ``provider`` so callers and tests can replace it.
"""

import logging
from typing import Callable, Optional

import machineid

from .crypto import hash_key
from .errors import MachineIdUnavailable

logger = logging.getLogger(__name__)


def machine_id() -> str:
    """
    Return the platform machine id (/etc/machine-id, IOPlatformUUID,
    MachineGuid, ...).

    Raises:
        MachineIdUnavailable: The id cannot be read on this host
    """
    try:
        value = machineid.id()
    except Exception as e:
        raise MachineIdUnavailable(f"cannot read machine id: {e}") from e
    if not value:
        raise MachineIdUnavailable("machine id is empty")
    return value


def machine_key(
    password: Optional[str] = None,
    provider: Callable[[], str] = machine_id,
) -> bytes:
    """
    Derive a 32-byte key from the machine id and an optional password.

    Args:
        password: Extra secret appended to the machine id
        provider: Function returning the machine id

    Returns:
        hash_key(machine_id + password)
    """
    ident = provider()
    logger.debug("derived machine key (password: %s)", "yes" if password else "no")
    return hash_key(ident + (password or ""))
