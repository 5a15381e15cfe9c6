"""HTTP client for the Assistants API run and run-step endpoints."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

import httpx

from runlens.errors import DecodeError, ProtocolError, TransportError
from runlens.redaction import mask_secret

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_BETA_HEADER = "assistants=v2"
DEFAULT_STEPS_LIMIT = 100


@dataclass
class RequestRecord:
    """What was sent and what came back, for debug display."""

    url: str
    headers: dict[str, str]
    status: Optional[int] = None
    status_text: Optional[str] = None
    # Parsed JSON when the body decodes, raw text otherwise
    response: Any = None


@dataclass
class DebugInfo:
    run: Optional[RequestRecord] = None
    steps: Optional[RequestRecord] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run": asdict(self.run) if self.run else None,
            "steps": asdict(self.steps) if self.steps else None,
        }


# Marks a body that did not parse; ``null`` is valid JSON
_UNPARSED = object()


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return _UNPARSED


class AssistantsClient:
    """Read-only access to a run and its steps.

    Both calls return the decoded JSON object. Failures raise
    ``TransportError`` (no response), ``ProtocolError`` (non-2xx status) or
    ``DecodeError`` (2xx with a body that is not JSON).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_BASE,
        beta_header: str = DEFAULT_BETA_HEADER,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        debug: Optional[DebugInfo] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._beta_header = beta_header
        self.debug = debug
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AssistantsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _headers(self, masked: bool = False) -> dict[str, str]:
        key = mask_secret(self._api_key) if masked else self._api_key
        return {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": self._beta_header,
        }

    def _get(self, label: str, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        request = self._client.build_request("GET", url, params=params, headers=self._headers())
        record = RequestRecord(url=str(request.url), headers=self._headers(masked=True))
        if self.debug is not None:
            setattr(self.debug, label.lower(), record)

        logger.debug("GET %s", record.url)
        try:
            response = self._client.send(request)
        except httpx.DecodingError as e:
            raise DecodeError(f"{label} API response could not be decoded: {e}", raw_text="") from e
        except httpx.RequestError as e:
            raise TransportError(str(e) or "Network error") from e

        text = response.text
        payload = _decode(text)
        record.status = response.status_code
        record.status_text = response.reason_phrase
        record.response = text if payload is _UNPARSED else payload
        logger.debug("%s -> %s", record.url, response.status_code)

        if not response.is_success:
            raise ProtocolError(
                f"{label} API request failed with status {response.status_code}: {text}",
                status_code=response.status_code,
                body=text,
            )
        if payload is _UNPARSED:
            raise DecodeError(f"{label} API response was not valid JSON: {text}", raw_text=text)
        return payload

    def get_run(self, thread_id: str, run_id: str) -> dict[str, Any]:
        return self._get("Run", f"{self._base_url}/threads/{thread_id}/runs/{run_id}")

    def list_steps(
        self,
        thread_id: str,
        run_id: str,
        limit: int = DEFAULT_STEPS_LIMIT,
    ) -> dict[str, Any]:
        return self._get(
            "Steps",
            f"{self._base_url}/threads/{thread_id}/runs/{run_id}/steps",
            params={"limit": limit},
        )
