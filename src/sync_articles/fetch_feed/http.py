"""Shared HTTP session for feed and page requests."""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sync_articles.config import HttpConfig

RETRY_STATUSES = (429, 500, 502, 503, 504)


def build_session(config: HttpConfig) -> requests.Session:
    """Create a session with a User-Agent and bounded retries on transient errors."""
    retry = Retry(
        total=config.max_retries,
        connect=config.max_retries,
        read=config.max_retries,
        status=config.max_retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.headers.update({"User-Agent": config.user_agent})
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def decode_text(response: requests.Response) -> str:
    """Response body as text, read as UTF-8 when the server names no charset.

    requests assumes ISO-8859-1 for text/* without a charset, which garbles
    Substack's UTF-8 feeds and pages.
    """
    content_type = response.headers.get("Content-Type", "")
    if "charset" in content_type.lower():
        response.encoding = requests.utils.get_encoding_from_headers(response.headers)
    else:
        response.encoding = "utf-8"
    return response.text
