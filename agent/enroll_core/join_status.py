"""
Join-status probe: classifies `dsregcmd /status` output into a JoinState.

Parsing is deliberately literal: find the line containing the label,
take what follows the first delimiter, strip it. Anything unexpected
(missing label, localized output, empty text) yields NEITHER_OR_UNKNOWN.
"""

from enum import Enum

from .constants import DOMAIN_JOINED_LABEL, CLOUD_JOINED_LABEL, JOIN_FIELD_DELIMITER
from .config import log
from . import platform_win


class JoinState(Enum):
    BOTH_JOINED = "BothJoined"
    DOMAIN_ONLY_NOT_CLOUD = "DomainOnlyNotCloud"
    NEITHER_OR_UNKNOWN = "NeitherOrUnknown"

    def __str__(self) -> str:
        return self.value


def read_field(text, label, delimiter=JOIN_FIELD_DELIMITER):
    """Value of the first `label <delim> value` line, or None if absent."""
    if not isinstance(text, str):
        return None
    for line in text.splitlines():
        if label in line and delimiter in line:
            return line.split(delimiter, 1)[1].strip()
    return None


def classify(text):
    """Return (JoinState, domain_raw, cloud_raw). Never raises."""
    domain = read_field(text, DOMAIN_JOINED_LABEL)
    cloud = read_field(text, CLOUD_JOINED_LABEL)

    if domain == "YES" and cloud == "YES":
        state = JoinState.BOTH_JOINED
    elif domain == "YES" and cloud == "NO":
        state = JoinState.DOMAIN_ONLY_NOT_CLOUD
    else:
        state = JoinState.NEITHER_OR_UNKNOWN
    return state, domain, cloud


class JoinStatusProber:
    def __init__(self, query=platform_win.query_join_status):
        self._query = query
        self.last_domain_joined = None
        self.last_cloud_joined = None

    def probe(self) -> JoinState:
        try:
            text = self._query()
        except Exception as e:
            log.warning("Join status query failed: %s", e)
            text = ""

        state, domain, cloud = classify(text)
        self.last_domain_joined = domain
        self.last_cloud_joined = cloud
        return state
