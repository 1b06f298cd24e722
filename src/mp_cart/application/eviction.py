"""Eviction sweep: remove a product from every user's cart once it is gone.

Runs after the purchase (or unlisting) has committed, on its own session, as a
background task. A slow or failing sweep never delays or fails the caller;
failures are logged and the stale rows are still hidden from cart listings
because those always re-check availability.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from src.mp_cart.domain.repository import CartRepositoryProtocol
from src.mp_cart.infrastructure.persistence import CartRepository
from src.mp_common.database import async_session_factory

logger = logging.getLogger(__name__)


class CartEvictionSweeper:
    def __init__(
        self,
        session_factory: Callable[[], Any] | None = None,
        repo: CartRepositoryProtocol | None = None,
    ) -> None:
        self._session_factory = session_factory or async_session_factory
        self._repo: CartRepositoryProtocol = repo or CartRepository()
        # Strong refs: the event loop only keeps weak references to tasks
        self._pending: set[asyncio.Task[int]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self, product_id: str) -> asyncio.Task[int]:
        """Fire-and-forget sweep for product_id. Returns the task for callers that want to await it."""
        task = asyncio.create_task(self.sweep(product_id), name=f"cart-evict-{product_id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def sweep(self, product_id: str) -> int:
        """Delete product_id from all carts. Returns rows removed, or 0 on failure."""
        try:
            async with self._session_factory() as db:
                removed = await self._repo.evict_product(db, product_id)
                await db.commit()
        except Exception:
            logger.exception("Cart eviction sweep failed for product %s", product_id)
            return 0
        logger.info("Evicted product %s from %d cart(s)", product_id, removed)
        return removed

    async def drain(self) -> None:
        """Wait for in-flight sweeps (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


_sweeper: CartEvictionSweeper | None = None


def get_cart_sweeper() -> CartEvictionSweeper:
    global _sweeper  # noqa: PLW0603
    if _sweeper is None:
        _sweeper = CartEvictionSweeper()
    return _sweeper
