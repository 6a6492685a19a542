"""
HTTP Client
============
Minimal blocking HTTP client built on ``urllib.request``.

Both ``post`` and ``get`` return an ``HttpResponse`` with the status code,
the decoded body and the response headers.  Non-2xx statuses are NOT raised;
callers inspect ``status``.  Bodies that are not valid UTF-8 are decoded
with replacement characters.  Transport failures (DNS, refused connection,
read timeout, dropped connection) raise ``OSError`` subclasses such as
``urllib.error.URLError`` or ``TimeoutError``.

Timeout policy lives here; the embedder itself never retries.
"""

import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass
class HttpResponse:
    status: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)


class HttpClient:
    """
    Usage:
        client = HttpClient(timeout=30)
        resp = client.post(url, '{"a": 1}', {"Content-Type": "application/json"})
        if resp.status == 200:
            ...
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def post(
        self, url: str, body: str, headers: Optional[Dict[str, str]] = None
    ) -> HttpResponse:
        return self._send(url, "POST", body.encode("utf-8"), headers)

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        return self._send(url, "GET", None, headers)

    def _send(
        self,
        url: str,
        method: str,
        data: Optional[bytes],
        headers: Optional[Dict[str, str]],
    ) -> HttpResponse:
        req = urllib.request.Request(
            url, data=data, headers=dict(headers or {}), method=method
        )
        logger.debug("%s %s", method, url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return HttpResponse(
                    status=resp.status,
                    body=resp.read().decode("utf-8", errors="replace"),
                    headers=dict(resp.headers.items()),
                )
        except urllib.error.HTTPError as exc:
            # HTTPError is also a response object: keep its status and body.
            body = exc.read().decode("utf-8", errors="replace")
            return HttpResponse(
                status=exc.code,
                body=body,
                headers=dict(exc.headers.items()) if exc.headers else {},
            )
