"""
HTTP session factory shared by every provider adapter.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from geoartifacts import config


def make_session(
    max_retries: int = config.MAX_RETRIES,
    backoff_factor: float = config.BACKOFF_FACTOR,
    status_forcelist: tuple = config.RETRY_STATUS_CODES,
    user_agent: str = config.USER_AGENT,
) -> requests.Session:
    """Create a requests.Session with automatic retry and backoff.

    Only transient statuses are retried; a 404 comes back on the first
    attempt so unknown datasets fail fast.

    Parameters
    ----------
    max_retries : int
        Total retry attempts per request.
    backoff_factor : float
        Exponential backoff multiplier (0.5 → 0.5s, 1s, 2s, ...).
    status_forcelist : tuple
        HTTP status codes that trigger a retry.
    user_agent : str
        User-Agent header value.

    Returns
    -------
    requests.Session
        Configured session with retry adapter mounted.
    """
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})

    retry = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=list(status_forcelist),
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session
