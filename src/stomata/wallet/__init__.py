"""Wallet utilities: address validation and EVM portfolio lookups."""

from stomata.wallet.address import AddressStatus, AddressValidator, ValidationResult
from stomata.wallet.portfolio import Portfolio, PortfolioDispatcher, PortfolioResult, get_portfolio
from stomata.wallet.rpc import (
    AccountType,
    EvmProvider,
    JsonRpcClient,
    MalformedResponse,
    ProviderUnreachable,
    RpcError,
    RpcErrorResponse,
)

__all__ = [
    "AccountType",
    "AddressStatus",
    "AddressValidator",
    "EvmProvider",
    "JsonRpcClient",
    "MalformedResponse",
    "Portfolio",
    "PortfolioDispatcher",
    "PortfolioResult",
    "ProviderUnreachable",
    "RpcError",
    "RpcErrorResponse",
    "ValidationResult",
    "get_portfolio",
]
