"""005: create ledger_entries table (append-only)

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL   PRIMARY KEY,
            transaction_id  VARCHAR(64) NOT NULL REFERENCES transactions(id),
            buyer_id        VARCHAR(64) NOT NULL,
            seller_id       VARCHAR(64) NOT NULL,
            product_id      VARCHAR(64) NOT NULL,
            price_cents     BIGINT      NOT NULL,
            status          VARCHAR(16) NOT NULL,
            failure_reason  VARCHAR(32),
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),

            CONSTRAINT uq_ledger_entries_transaction UNIQUE (transaction_id),
            CONSTRAINT ck_ledger_entries_status CHECK (status IN ('completed', 'failed'))
        );
    """)
    op.execute(
        "CREATE INDEX idx_ledger_entries_buyer "
        "ON ledger_entries (buyer_id, created_at DESC, id DESC);"
    )
    op.execute(
        "CREATE INDEX idx_ledger_entries_seller_completed "
        "ON ledger_entries (seller_id, created_at DESC, id DESC) WHERE status = 'completed';"
    )
    op.execute("""
        CREATE TRIGGER trg_ledger_entries_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
