"""Portfolio lookup and its background dispatcher."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from queue import Empty, Queue

from stomata.wallet.rpc import AccountType, EvmProvider, JsonRpcClient, RpcError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Portfolio:
    """Account overview of one address on one chain."""

    address: str
    chain_id: int
    native_balance: Decimal  # Ether
    account_type: AccountType
    transaction_count: int


@dataclass(slots=True, frozen=True)
class PortfolioResult:
    """Outcome of one dispatched lookup: exactly one of portfolio/error is set."""

    address: str
    portfolio: Portfolio | None = None
    error: RpcError | None = None


def get_portfolio(provider: EvmProvider) -> Portfolio:
    """Query the chain for the provider's address.

    Raises:
        RpcError: On any transport, protocol or error-envelope failure.
    """
    return Portfolio(
        address=provider.address,
        chain_id=provider.chain_id(),
        native_balance=provider.native_balance(),
        account_type=provider.account_type(),
        transaction_count=provider.transaction_count(),
    )


class PortfolioDispatcher:
    """
    Runs portfolio lookups off the UI thread.

    Each dispatch starts a daemon thread; results are pushed to a
    thread-safe Queue and collected with ``drain`` without blocking.
    """

    def __init__(
        self,
        client_factory: Callable[[], JsonRpcClient],
        result_queue: Queue[PortfolioResult] | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            client_factory: Builds the RPC client used by each lookup.
            result_queue: Queue the results are pushed to.
        """
        self._client_factory = client_factory
        self._queue: Queue[PortfolioResult] = result_queue if result_queue is not None else Queue()
        self._threads: list[threading.Thread] = []

    def dispatch(self, address: str) -> None:
        """Start a lookup for ``address`` and return immediately."""
        thread = threading.Thread(
            target=self._lookup,
            args=(address,),
            daemon=True,
            name=f"PortfolioLookup-{address[:10]}",
        )
        self._threads = [t for t in self._threads if t.is_alive()]
        self._threads.append(thread)
        thread.start()

    def drain(self) -> list[PortfolioResult]:
        """Collect every result delivered so far."""
        results: list[PortfolioResult] = []
        while True:
            try:
                results.append(self._queue.get_nowait())
            except Empty:
                break
        return results

    def join(self, timeout: float | None = None) -> None:
        """Wait for the lookups still running."""
        for thread in list(self._threads):
            thread.join(timeout=timeout)

    def _lookup(self, address: str) -> None:
        try:
            provider = EvmProvider(address, self._client_factory())
            result = PortfolioResult(address, portfolio=get_portfolio(provider))
        except RpcError as e:
            logger.warning("Portfolio lookup for %s failed: %s", address, e)
            result = PortfolioResult(address, error=e)
        except Exception as e:
            # every dispatch queues exactly one result
            logger.exception("Portfolio lookup for %s crashed", address)
            result = PortfolioResult(address, error=RpcError(f"unexpected failure: {e}"))
        self._queue.put(result)
