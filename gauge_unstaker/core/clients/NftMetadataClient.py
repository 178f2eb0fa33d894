from __future__ import annotations

import base64
import json
from typing import Any
from urllib.parse import unquote

import httpx
from loguru import logger

from gauge_unstaker.core.adapters.models import NftMetadata
from gauge_unstaker.core.config import get_ipfs_gateway
from gauge_unstaker.core.constants.base import DEFAULT_HTTP_TIMEOUT

_DATA_URI_PREFIX = "data:"
_IPFS_PREFIX = "ipfs://"


def decode_data_uri(uri: str) -> str:
    """Return the textual payload of a ``data:`` URI (base64 or percent-encoded)."""
    if not uri.startswith(_DATA_URI_PREFIX):
        raise ValueError(f"Not a data URI: {uri[:32]}")
    header, sep, payload = uri[len(_DATA_URI_PREFIX) :].partition(",")
    if not sep:
        raise ValueError("Malformed data URI: missing ',' separator")
    if header.endswith(";base64"):
        return base64.b64decode(payload).decode("utf-8")
    return unquote(payload)


def parse_metadata(raw: str | bytes | dict[str, Any]) -> NftMetadata:
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Token metadata is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Token metadata must be a JSON object")
    return NftMetadata.model_validate(data)


class NftMetadataClient:
    """Resolves an ERC-721 ``tokenURI`` into :class:`NftMetadata`."""

    def __init__(
        self,
        *,
        ipfs_gateway: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        gateway = ipfs_gateway or get_ipfs_gateway()
        self.ipfs_gateway = gateway if gateway.endswith("/") else f"{gateway}/"
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT), follow_redirects=True
        )

    def resolve_url(self, uri: str) -> str:
        if uri.startswith(_IPFS_PREFIX):
            path = uri[len(_IPFS_PREFIX) :]
            if path.startswith("ipfs/"):
                path = path[len("ipfs/") :]
            return f"{self.ipfs_gateway}{path}"
        if uri.startswith(("http://", "https://")):
            return uri
        raise ValueError(f"Unsupported token URI scheme: {uri[:32]}")

    async def fetch(self, token_uri: str) -> NftMetadata:
        uri = (token_uri or "").strip()
        if not uri:
            raise ValueError("Empty token URI")
        if uri.startswith(_DATA_URI_PREFIX):
            return parse_metadata(decode_data_uri(uri))

        url = self.resolve_url(uri)
        logger.debug(f"Fetching token metadata from {url}")
        resp = await self.client.get(url)
        resp.raise_for_status()
        return parse_metadata(resp.json())

    async def close(self) -> None:
        await self.client.aclose()
