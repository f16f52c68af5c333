"""
HTTP session with connection pooling and the certifi CA bundle. Used only
by the optional status reporter.

Phase reports sit on the convergence path, so the session fails fast: no
urllib3 retries, no backoff. A lost report is simply dropped.
"""

import os

import certifi
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_retry_strategy = Retry(total=0, raise_on_status=False)


def _get_ca_bundle():
    """Env override first (corporate TLS inspection), then certifi."""
    env_ca = os.environ.get('REQUESTS_CA_BUNDLE') or os.environ.get('SSL_CERT_FILE')
    if env_ca and os.path.isfile(env_ca):
        return env_ca
    return certifi.where()


def create_session():
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=2,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    return session


def reset_session(session):
    """Close and recreate the HTTP session (fixes stale connections)."""
    try:
        session.close()
    except Exception:
        pass
    return create_session()


# Global shared session
http = create_session()
