from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
import json
import logging

import requests

from dashboard.config.env import get_quickstats_config

"""
USDA NASS QuickStats: the browser never sees the API key. Requests are
forwarded with the server-side credential appended as `key`.
"""

logger = logging.getLogger(__name__)

MISSING_KEY = "NO_KEY_FOUND"
_SECRET_PARAMS = {"key", "apikey", "api_key"}


Params = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class UpstreamError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class ProxyResponse:
    status: int
    body: bytes
    content_type: str


def build_quickstats_url(path: str, params: Optional[Params] = None, api_key: Optional[str] = None) -> str:
    """Resolve an upstream URL for `path` with the credential injected.

    `params` is a mapping or a sequence of pairs; repeated keys are forwarded
    as given. A `key` sent by the caller is replaced, never forwarded.
    """
    cfg = get_quickstats_config()
    pairs = params.items() if isinstance(params, Mapping) else (params or ())
    query: List[Tuple[str, str]] = [(k, str(v)) for k, v in pairs if k.lower() != "key"]
    query.append(("key", api_key or cfg.api_key or MISSING_KEY))
    path = path.lstrip("/")
    return f"{cfg.base_url}/{path}?{urlencode(query)}"


def redact_url(url: str) -> str:
    parts = urlsplit(url)
    query = [(k, "***" if k.lower() in _SECRET_PARAMS else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit(parts._replace(query=urlencode(query)))


def proxy_get(path: str, params: Optional[Params] = None) -> ProxyResponse:
    """Forward a GET upstream and hand back status/body/content-type verbatim.

    Transport failures raise UpstreamError; upstream HTTP errors are returned
    as-is for the caller to pass through.
    """
    cfg = get_quickstats_config()
    url = build_quickstats_url(path, params)
    logger.info("Proxy path: %s", redact_url(url))
    try:
        resp = requests.get(url, timeout=cfg.timeout)
    except requests.exceptions.RequestException as e:
        logger.error("Proxy error: %s", e)
        raise UpstreamError(f"QuickStats request failed: {e}") from e
    logger.info("Proxy response status: %s", resp.status_code)
    return ProxyResponse(
        status=resp.status_code,
        body=resp.content,
        content_type=resp.headers.get("Content-Type", "application/json"),
    )


def parse_records(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    return data if isinstance(data, list) else []


def fetch_records(params: Optional[Params] = None) -> List[Dict[str, Any]]:
    """Fetch the `data` array of an api_GET query."""
    resp = proxy_get("api_GET/", params)
    if not 200 <= resp.status < 300:
        raise UpstreamError(f"USDA responded with status {resp.status}", status=resp.status)
    try:
        payload = json.loads(resp.body)
    except ValueError as e:
        raise UpstreamError(f"USDA returned invalid JSON: {e}", status=resp.status) from e
    records = parse_records(payload)
    logger.info("Fetched %d records", len(records))
    return records
