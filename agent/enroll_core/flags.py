"""
Persistent flags — presence-only markers that survive reboot.

A flag is a registry value under one key holding a fixed sentinel. Only
presence matters; the sentinel is never compared on read. Flags are never
cleared by the agent.
"""

from .constants import FLAG_KEY_PATH, FLAG_SENTINEL
from .config import log


class FlagStore:
    def __init__(self, registry, key_path=FLAG_KEY_PATH, sentinel=FLAG_SENTINEL):
        self._registry = registry
        self._key_path = key_path
        self._sentinel = sentinel

    def flag_exists(self, name) -> bool:
        return self._registry.read_value(self._key_path, name) is not None

    def set_flag(self, name) -> bool:
        """Create the parent key if absent and write the sentinel.

        A failed write is logged and reported as False; the next
        flag_exists() simply sees the flag as not yet set.
        """
        if self.flag_exists(name):
            log.info("Flag %s already present — no write needed", name)
            return True

        if not self._registry.key_exists(self._key_path):
            self._registry.create_key(self._key_path)

        if self._registry.write_value(self._key_path, name, self._sentinel):
            log.info("Flag %s set", name)
            return True
        log.error("Could not persist flag %s", name)
        return False
