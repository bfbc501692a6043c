from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class HttpResponse:
    status: int
    url: str
    text: str
    headers: Dict[str, str]
    content: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClientPort(ABC):
    @abstractmethod
    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Any] = None,
        params: Optional[Dict[str, str]] = None,
        timeout_sec: Optional[float] = None,
    ) -> HttpResponse:
        """
        Send a request. Transport failures (refused connection, timeout) raise
        TransientError; any HTTP status is returned as a response.
        """
        ...
