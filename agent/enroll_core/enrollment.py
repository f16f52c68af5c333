"""
Enrollment endpoint configuration under CloudDomainJoin\\TenantInfo\\<tenant>.

ensure_configured() is safe to call on every start: values that already
match are left alone and logged as such; only drift is rewritten.
"""

from .constants import TENANT_INFO_PATH, ENROLLMENT_ENTRIES
from .config import log


class EnrollmentConfigurator:
    def __init__(self, registry, tenant_id=None, entries=ENROLLMENT_ENTRIES):
        self._registry = registry
        self._tenant_id = tenant_id
        self._entries = entries

    def resolve_tenant_path(self):
        """Key path for the tenant, or None if no tenant can be determined."""
        tenant_id = self._tenant_id
        if not tenant_id:
            subkeys = self._registry.list_subkeys(TENANT_INFO_PATH)
            if not subkeys:
                return None
            tenant_id = subkeys[0]
            log.info("Discovered tenant %s under TenantInfo", tenant_id)
        return f"{TENANT_INFO_PATH}\\{tenant_id}"

    def ensure_configured(self):
        """Converge all entries to their expected values. Returns the number of writes."""
        path = self.resolve_tenant_path()
        if path is None:
            log.warning("No tenant id configured or discovered — skipping enrollment config")
            return 0

        if not self._registry.key_exists(path):
            log.info("Creating registry path %s", path)
            self._registry.create_key(path)

        writes = 0
        for name, expected in self._entries:
            current = self._registry.read_value(path, name)
            if current == expected:
                log.info("Registry %s already set — no change", name)
                continue

            if current is None:
                log.info("Registry %s missing — writing %s", name, expected)
            else:
                log.info("Registry %s is %r, expected %r — overwriting", name, current, expected)
            if self._registry.write_value(path, name, expected):
                writes += 1
        return writes
