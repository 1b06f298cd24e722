"""004: create transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id              VARCHAR(64) PRIMARY KEY,
            product_id      VARCHAR(64) NOT NULL REFERENCES products(id),
            buyer_id        VARCHAR(64) NOT NULL,
            seller_id       VARCHAR(64) NOT NULL,
            price_cents     BIGINT      NOT NULL,
            status          VARCHAR(16) NOT NULL DEFAULT 'pending',
            failure_reason  VARCHAR(32),
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            finalized_at    TIMESTAMPTZ,

            CONSTRAINT ck_transactions_status CHECK (status IN ('pending', 'completed', 'failed')),
            CONSTRAINT ck_transactions_not_self CHECK (buyer_id <> seller_id),
            CONSTRAINT ck_transactions_price_non_negative CHECK (price_cents >= 0),
            CONSTRAINT ck_transactions_failure_reason CHECK (
                (status = 'failed') = (failure_reason IS NOT NULL)
            )
        );
    """)
    # At most one completed purchase per product
    op.execute(
        "CREATE UNIQUE INDEX uq_transactions_completed_product "
        "ON transactions (product_id) WHERE status = 'completed';"
    )
    op.execute("CREATE INDEX idx_transactions_buyer ON transactions (buyer_id, created_at DESC);")
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_transactions_finalize_once()
        RETURNS TRIGGER AS $$
        BEGIN
            IF TG_OP = 'DELETE' THEN
                RAISE EXCEPTION 'transactions cannot be deleted'
                    USING ERRCODE = 'restrict_violation';
            END IF;
            IF OLD.status <> 'pending' OR NEW.status NOT IN ('completed', 'failed')
               OR NEW.id <> OLD.id OR NEW.product_id <> OLD.product_id
               OR NEW.buyer_id <> OLD.buyer_id OR NEW.seller_id <> OLD.seller_id
               OR NEW.price_cents <> OLD.price_cents THEN
                RAISE EXCEPTION 'transaction % may only move from pending to a terminal status', OLD.id
                    USING ERRCODE = 'restrict_violation';
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_transactions_finalize_once
            BEFORE UPDATE OR DELETE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_transactions_finalize_once();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_transactions_finalize_once();")
