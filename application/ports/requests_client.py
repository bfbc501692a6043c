from __future__ import annotations

import requests
from typing import Any, Dict, Optional

from application.ports.http_client import HttpClientPort, HttpResponse
from domain.exceptions import TransientError


class RequestsSessionHttpClient(HttpClientPort):
    def __init__(self, base_headers: Optional[Dict[str, str]] = None, timeout_sec: float = 20):
        self._session = requests.Session()
        self._base_headers = base_headers or {}
        self._timeout = timeout_sec

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Any] = None,
        params: Optional[Dict[str, str]] = None,
        timeout_sec: Optional[float] = None,
    ) -> HttpResponse:
        merged = dict(self._base_headers)
        if headers:
            merged.update(headers)

        try:
            resp = self._session.request(
                method=method.upper(),
                url=url,
                headers=merged,
                json=json_body,
                params=params,
                timeout=timeout_sec if timeout_sec is not None else self._timeout,
            )
        except requests.RequestException as exc:
            raise TransientError(f"{method.upper()} {url} failed: {exc}") from exc

        return HttpResponse(
            status=resp.status_code,
            url=str(resp.url),
            text=resp.text,
            headers=dict(resp.headers),
            content=resp.content,
        )
