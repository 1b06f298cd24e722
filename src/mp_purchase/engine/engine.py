"""PurchaseEngine — turns a purchase request into exactly one terminal Transaction.

    [initiated] --validate--> [pending] --commit--> [completed]
         |                         |
         +--reject--> [failed]     +--conflict--> [failed]

Phase 1 (abandonable, bounded by PURCHASE_TIMEOUT_SECONDS): re-read the product
from the Inventory Store on the caller's session and validate it. Nothing is
written; a cancelled or timed-out caller leaves no trace.

Phase 2 (not cancellable): on a dedicated session, insert a pending
transaction, compare-and-set availability against the version read in phase
1, finalize the transaction, append the ledger entry and commit, all in one
database transaction. The phase runs as its own task under asyncio.shield, so
a caller that goes away after the CAS has been issued cannot abort it.

Exclusivity comes from the row-level CAS alone; there is no process-wide or
per-product lock, so purchases of unrelated products never wait on each other
and a lost race surfaces as AvailabilityConflictError rather than a stale read.

Phase 3 (best effort): once the commit lands, the commit task itself schedules
the eviction of the product from every cart, so it happens even if the caller
has gone away.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_cart.application.eviction import CartEvictionSweeper, get_cart_sweeper
from src.mp_common.database import async_session_factory
from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import FailureReason, TransactionStatus
from src.mp_common.errors import (
    AppError,
    AvailabilityConflictError,
    ConflictError,
    ProductUnavailableError,
    SelfPurchaseAttemptError,
    StorageUnavailableError,
    TransactionNotFoundError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.storage import storage_errors
from src.mp_inventory.application.service import InventoryService
from src.mp_inventory.domain.models import Product
from src.mp_ledger.application.service import LedgerService
from src.mp_purchase.domain.models import Transaction
from src.mp_purchase.domain.repository import TransactionRepositoryProtocol
from src.mp_purchase.infrastructure.persistence import TransactionRepository

logger = logging.getLogger(__name__)


def validate_purchase(product: Product, buyer_id: str) -> None:
    """Reject before anything is written.

    Self-purchase is checked before availability so a seller always gets
    SelfPurchaseAttemptError for their own listing, sold or not.
    """
    if product.is_sold_by(buyer_id):
        raise SelfPurchaseAttemptError()
    if not product.is_available:
        raise ProductUnavailableError(product.id)


class PurchaseEngine:
    def __init__(
        self,
        inventory: InventoryService | None = None,
        transactions: TransactionRepositoryProtocol | None = None,
        ledger: LedgerService | None = None,
        sweeper: CartEvictionSweeper | None = None,
        session_factory: Callable[[], Any] | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._inventory = inventory or InventoryService()
        self._transactions: TransactionRepositoryProtocol = transactions or TransactionRepository()
        self._ledger = ledger or LedgerService()
        self._sweeper = sweeper
        self._session_factory = session_factory or async_session_factory
        self._timeout = (
            timeout_seconds if timeout_seconds is not None else settings.PURCHASE_TIMEOUT_SECONDS
        )

    @property
    def sweeper(self) -> CartEvictionSweeper:
        return self._sweeper or get_cart_sweeper()

    async def purchase(self, db: AsyncSession, buyer_id: str, product_id: str) -> Transaction:
        """Returns the COMPLETED transaction or raises.

        Raises ProductNotFoundError, SelfPurchaseAttemptError and
        ProductUnavailableError from validation, AvailabilityConflictError when
        another buyer won the CAS (a FAILED transaction is recorded), and
        StorageUnavailableError on timeouts or storage faults.
        """
        product = await self._load_fresh(db, product_id)
        validate_purchase(product, buyer_id)

        commit = asyncio.ensure_future(self._commit_phase(product, buyer_id))
        commit.add_done_callback(_log_orphaned_failure)
        transaction = await asyncio.shield(commit)

        if transaction.status == TransactionStatus.FAILED.value:
            logger.info(
                "Purchase conflict: product=%s buyer=%s tx=%s",
                product_id,
                buyer_id,
                transaction.id,
            )
            raise AvailabilityConflictError(product_id)

        logger.info(
            "Purchase completed: product=%s buyer=%s seller=%s price_cents=%d tx=%s",
            product_id,
            buyer_id,
            transaction.seller_id,
            transaction.price_cents,
            transaction.id,
        )
        return transaction

    async def get_transaction(
        self, db: AsyncSession, user_id: str, transaction_id: str
    ) -> Transaction:
        """Visible to its buyer and its seller; anyone else gets not-found."""
        with storage_errors("get_transaction"):
            transaction = await self._transactions.get_by_id(db, transaction_id)
        if transaction is None or user_id not in (transaction.buyer_id, transaction.seller_id):
            raise TransactionNotFoundError(transaction_id)
        return transaction

    async def _load_fresh(self, db: AsyncSession, product_id: str) -> Product:
        try:
            async with asyncio.timeout(self._timeout):
                return await self._inventory.get_product(db, product_id)
        except TimeoutError as exc:
            raise StorageUnavailableError(f"Timed out loading product {product_id}") from exc
        finally:
            # Release the read snapshot; the commit phase uses its own session
            await db.rollback()

    async def _commit_phase(self, product: Product, buyer_id: str) -> Transaction:
        pending = Transaction(
            id=generate_id(),
            product_id=product.id,
            buyer_id=buyer_id,
            seller_id=product.seller_id,
            price_cents=product.price_cents,
            status=TransactionStatus.PENDING.value,
            created_at=utc_now(),
        )
        async with self._session_factory() as session:
            try:
                with storage_errors("purchase_commit"):
                    await self._transactions.insert_pending(session, pending)
                try:
                    await self._inventory.set_availability(
                        session, product.id, False, expected_version=product.version
                    )
                except ConflictError:
                    outcome = pending.failed(FailureReason.CONFLICT, utc_now())
                else:
                    outcome = pending.completed(utc_now())
                with storage_errors("purchase_commit"):
                    await self._transactions.finalize(session, outcome)
                await self._ledger.record(session, outcome)
                with storage_errors("purchase_commit"):
                    await session.commit()
            except BaseException:
                await session.rollback()
                raise
        if outcome.status == TransactionStatus.COMPLETED.value:
            # Scheduled here so a caller cancelled after the commit still evicts
            self.sweeper.schedule(product.id)
        return outcome


def _log_orphaned_failure(task: "asyncio.Future[Transaction]") -> None:
    """Retrieve the commit task's exception so a cancelled caller doesn't leave it unobserved."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None and not isinstance(exc, AppError):
        logger.error("Purchase commit phase failed", exc_info=exc)


_engine: PurchaseEngine | None = None


def get_purchase_engine() -> PurchaseEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = PurchaseEngine()
    return _engine
