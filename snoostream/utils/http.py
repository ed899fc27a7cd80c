# snoostream/utils/http.py
# requests.Session factory with a User-Agent and urllib3 retries for
# transient failures. 429 is left to the caller so Retry-After can be honoured.

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import HTTP_BACKOFF_FACTOR, HTTP_MAX_RETRIES, HTTP_VERIFY_TLS


def make_session(user_agent: str, max_retries: int = HTTP_MAX_RETRIES) -> requests.Session:
    s = requests.Session()
    s.headers.update({
        "User-Agent": user_agent,
        "Accept": "application/json",
        "Connection": "keep-alive",
    })
    s.verify = HTTP_VERIFY_TLS
    retry = Retry(
        total=max_retries,
        connect=max_retries,
        read=max_retries,
        backoff_factor=HTTP_BACKOFF_FACTOR,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    return s
