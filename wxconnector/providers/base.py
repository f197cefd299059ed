from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import requests
from requests import Response


logger = logging.getLogger(__name__)

REDACTED = "***"


class ProviderError(RuntimeError):
    """Base provider error."""


class QuotaExceeded(ProviderError):
    """Raised when a provider reports a quota/usage limit issue."""


@dataclass
class RequestConfig:
    timeout: float = 10.0


class HTTPProvider:
    """Base class that adds timeouts and error mapping for HTTP providers.

    Query strings carry credentials, so anything derived from a request URL
    (log lines, error messages) passes through :meth:`redact` first. Transport
    errors are re-raised without their cause because the requests exception
    text embeds the full URL.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
        secrets: Iterable[str] = (),
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self.secrets = tuple(secret for secret in secrets if secret)
        self._log = logging.getLogger(self.__class__.__name__)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", self.redact(response.text))
            raise QuotaExceeded("quota exceeded")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, self.redact(response.text))
            raise ProviderError(f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            reason = self.redact(str(exc))
            self._log.error("Request to %s timed out: %s", url, reason)
            raise ProviderError(f"timeout: {reason}") from None
        except requests.RequestException as exc:
            reason = self.redact(str(exc))
            self._log.error("Request to %s failed: %s", url, reason)
            raise ProviderError(f"request failed: {reason}") from None
        return self._handle_response(response)

    def _json(self, response: Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            self._log.error("Failed to decode JSON from %s", self.redact(response.url))
            raise ProviderError("invalid json") from None
        if not isinstance(data, dict):
            raise ProviderError("response must be a JSON object")
        return data


__all__ = ["HTTPProvider", "ProviderError", "QuotaExceeded", "REDACTED", "RequestConfig"]
