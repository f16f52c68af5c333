"""
HKLM registry access — the host's persistent key/value store.

Every method is best-effort: failures are logged and come back as a
neutral value (None / False / []), never as an exception. Callers treat
"could not read" exactly like "not there yet".
"""

from .config import log


class WinRegistry:
    """Path-based view of one registry hive (HKEY_LOCAL_MACHINE by default)."""

    def __init__(self, hive=None):
        self._hive = hive

    def _root(self):
        import winreg
        return self._hive if self._hive is not None else winreg.HKEY_LOCAL_MACHINE

    def key_exists(self, path):
        try:
            import winreg
            key = winreg.OpenKey(self._root(), path, 0, winreg.KEY_READ)
            winreg.CloseKey(key)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            log.warning("Registry open failed for %s: %s", path, e)
            return False

    def create_key(self, path):
        """Create the key and any missing parents. Returns True on success."""
        try:
            import winreg
            key = winreg.CreateKeyEx(self._root(), path, 0, winreg.KEY_WRITE)
            winreg.CloseKey(key)
            return True
        except OSError as e:
            log.warning("Registry create failed for %s: %s", path, e)
            return False

    def read_value(self, path, name):
        """Return the value as a string, or None if the key/value is absent."""
        try:
            import winreg
            key = winreg.OpenKey(self._root(), path, 0, winreg.KEY_READ)
            try:
                value, _ = winreg.QueryValueEx(key, name)
            finally:
                winreg.CloseKey(key)
            return None if value is None else str(value)
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("Registry read failed for %s\\%s: %s", path, name, e)
            return None

    def write_value(self, path, name, value):
        """Write a REG_SZ value, creating the key if needed. Returns True on success."""
        try:
            import winreg
            key = winreg.CreateKeyEx(self._root(), path, 0, winreg.KEY_WRITE)
            try:
                winreg.SetValueEx(key, name, 0, winreg.REG_SZ, str(value))
            finally:
                winreg.CloseKey(key)
            return True
        except OSError as e:
            log.warning("Registry write failed for %s\\%s: %s", path, name, e)
            return False

    def list_subkeys(self, path):
        names = []
        try:
            import winreg
            key = winreg.OpenKey(self._root(), path, 0, winreg.KEY_READ)
            try:
                index = 0
                while True:
                    try:
                        names.append(winreg.EnumKey(key, index))
                    except OSError:
                        break
                    index += 1
            finally:
                winreg.CloseKey(key)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning("Registry enumerate failed for %s: %s", path, e)
        return names
