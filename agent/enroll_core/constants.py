"""
Constants, poll intervals, registry locations and external command lines.
"""

AGENT_VERSION = "2.0.0"

# ─── Timing ──────────────────────────────────────────────────────
JOIN_POLL_INTERVAL_SEC = 30     # Re-probe join status every 30s
REBOOT_GRACE_SEC = 120          # Let in-flight join/sync work settle before reboot
JOIN_SETTLE_SEC = 60            # Wait after firing the join command
VERIFY_POLL_INTERVAL_SEC = 30   # Re-query the enrollment event log every 30s
RESTORE_GRACE_SEC = 180         # Enrollment must settle before users get back in
SERVICE_POLL_INTERVAL_SEC = 5   # Service gate confirmation polling

# ─── Persistent flags (HKLM) ─────────────────────────────────────
FLAG_KEY_PATH = r"SOFTWARE\HybridMdmEnroll"
REBOOT_FLAG = "RebootOccurred"
ENROLLED_FLAG = "EnrollmentVerified"
CLOUD_PURPOSE_MARKER = "CloudJoinedByPurpose"
FLAG_SENTINEL = "1"

# ─── Enrollment endpoints (HKLM) ─────────────────────────────────
TENANT_INFO_PATH = r"SYSTEM\CurrentControlSet\Control\CloudDomainJoin\TenantInfo"

# (value name, expected literal), compared with exact string equality
ENROLLMENT_ENTRIES = (
    ("MdmEnrollmentUrl",
     "https://enrollment.manage.microsoft.com/enrollmentserver/discovery.svc"),
    ("MdmTermsOfUseUrl",
     "https://portal.manage.microsoft.com/TermsofUse.aspx"),
    ("MdmComplianceUrl",
     "https://portal.manage.microsoft.com/?portalAction=Compliance"),
)

# ─── Join client ─────────────────────────────────────────────────
JOIN_STATUS_CMD = ["dsregcmd", "/status"]
JOIN_CMD = ["dsregcmd", "/join"]
DOMAIN_JOINED_LABEL = "DomainJoined"
CLOUD_JOINED_LABEL = "AzureAdJoined"
JOIN_FIELD_DELIMITER = ":"

# ─── Enrollment event log ────────────────────────────────────────
ENROLLMENT_EVENT_CHANNEL = (
    "Microsoft-Windows-DeviceManagement-Enterprise-Diagnostics-Provider/Admin"
)
ENROLLMENT_SUCCESS_EVENT_ID = 75   # "Auto MDM Enroll: Succeeded"

# ─── Dependent service (session broker agent) ────────────────────
GATED_SERVICE_NAME = "RDAgentBootLoader"

# ─── Host control ────────────────────────────────────────────────
REBOOT_CMD = ["shutdown", "/r", "/f", "/t", "0"]
TASK_NAME = "Hybrid MDM Enrollment"
COMMAND_TIMEOUT_SEC = 120

# ─── Status reporting ────────────────────────────────────────────
STATUS_TIMEOUT_SEC = (3, 5)     # (connect, read); reports must not stall the loop
