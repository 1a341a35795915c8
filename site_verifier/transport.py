from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from site_verifier.errors import TransportError
from site_verifier_contracts import ContentKind, HttpResponse, VerificationRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0


def wire_headers(headers: Mapping[str, str], content_type: str) -> dict[str, str]:
    """Caller headers with Content-Type forced to the configured value."""
    merged = {name: value for name, value in headers.items() if name.lower() != "content-type"}
    merged["Content-Type"] = content_type
    return merged


class HttpTransport:
    """Sends one verification request per call over a shared httpx client."""

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        *,
        log_response: bool = False,
        client: httpx.Client | None = None,
    ) -> None:
        self._log_response = log_response
        self._client = client or httpx.Client(timeout=timeout_s)

    def send(self, request: VerificationRequest, decode: ContentKind) -> HttpResponse:
        logger.debug("Making HTTP request to %s with method %s", request.url, request.method.value)
        try:
            response = self._client.request(
                request.method.value,
                request.url,
                headers=wire_headers(request.headers, request.content_type),
                content=request.body if request.body else None,
                timeout=request.timeout_s,
            )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            logger.error("HTTP request failed: %s", exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        body, decoded = self._materialize(response, decode)
        if self._log_response:
            logger.debug(
                "Completed HTTP request: method=%s url=%s status=%d response=%r",
                request.method.value,
                request.url,
                response.status_code,
                body,
            )
        else:
            logger.debug(
                "Completed HTTP request: method=%s url=%s status=%d",
                request.method.value,
                request.url,
                response.status_code,
            )
        return HttpResponse(
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
            body=body,
            decoded=decoded,
        )

    @staticmethod
    def _materialize(response: httpx.Response, decode: ContentKind) -> tuple[Any, bool]:
        text = response.text
        if decode is ContentKind.JSON and text.strip() != "":
            try:
                return response.json(), True
            except ValueError:
                return text, False
        return text, False

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
