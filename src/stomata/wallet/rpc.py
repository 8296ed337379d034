"""Minimal EVM JSON-RPC client."""

from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)

WEI_PER_ETH = Decimal(10) ** 18
DEFAULT_TIMEOUT = 10.0


class RpcError(Exception):
    """Base class for wallet RPC failures."""


class ProviderUnreachable(RpcError):
    """The RPC endpoint could not be reached or answered with an HTTP error."""


class MalformedResponse(RpcError):
    """The endpoint answered, but not with a usable JSON-RPC result."""


class RpcErrorResponse(RpcError):
    """The endpoint returned a JSON-RPC error envelope."""

    def __init__(self, code: Any, message: Any) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


def parse_hex_int(value: Any) -> int:
    """Parse a ``0x``-prefixed hex quantity.

    Raises:
        MalformedResponse: If the value is not a hex string.
    """
    if not isinstance(value, str):
        raise MalformedResponse(f"expected hex string, got {value!r}")
    digits = value[2:] if value.startswith(("0x", "0X")) else value
    if not digits:
        return 0
    try:
        return int(digits, 16)
    except ValueError as e:
        raise MalformedResponse(f"invalid hex quantity {value!r}") from e


def wei_to_eth(wei: int) -> Decimal:
    """Convert wei to ether."""
    return Decimal(wei) / WEI_PER_ETH


class JsonRpcClient:
    """
    Blocking JSON-RPC 2.0 client over HTTP.

    Every call is bounded by ``timeout``; the client is meant to run on a
    worker thread, never on the thread driving the UI.
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            url: Endpoint URL.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke one method and return its ``result`` field."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params or [],
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(self.url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderUnreachable(f"{method}: HTTP {e.response.status_code}") from e
        except httpx.InvalidURL as e:
            # InvalidURL is not an HTTPError
            raise ProviderUnreachable(f"{method}: invalid URL {self.url!r}: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderUnreachable(f"{method}: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedResponse(f"{method}: response is not JSON") from e
        if not isinstance(body, dict):
            raise MalformedResponse(f"{method}: response is not a JSON object")

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcErrorResponse(error.get("code"), error.get("message"))
            raise RpcErrorResponse(None, error)
        if "result" not in body:
            raise MalformedResponse(f"{method}: missing result field")
        logger.debug("RPC %s -> %r", method, body["result"])
        return body["result"]


class AccountType(Enum):
    EOA = "EOA"
    CONTRACT = "Contract"


class EvmProvider:
    """Account queries for one address against one JSON-RPC endpoint."""

    def __init__(self, address: str, client: JsonRpcClient) -> None:
        self.address = address
        self.client = client

    def chain_id(self) -> int:
        return parse_hex_int(self.client.call("eth_chainId"))

    def native_balance(self) -> Decimal:
        """Balance of the address in ether."""
        wei = parse_hex_int(self.client.call("eth_getBalance", [self.address, "latest"]))
        return wei_to_eth(wei)

    def account_type(self) -> AccountType:
        code = self.client.call("eth_getCode", [self.address, "latest"])
        if not isinstance(code, str):
            raise MalformedResponse(f"eth_getCode: expected hex string, got {code!r}")
        return AccountType.EOA if code in ("0x", "0x0", "") else AccountType.CONTRACT

    def transaction_count(self) -> int:
        return parse_hex_int(self.client.call("eth_getTransactionCount", [self.address, "latest"]))
