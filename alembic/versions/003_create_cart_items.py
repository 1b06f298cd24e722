"""003: create cart_items table

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # No price or availability columns: both are always read from products
    op.execute("""
        CREATE TABLE cart_items (
            id          VARCHAR(64) PRIMARY KEY,
            user_id     VARCHAR(64) NOT NULL,
            product_id  VARCHAR(64) NOT NULL REFERENCES products(id) ON DELETE CASCADE,
            quantity    INTEGER     NOT NULL DEFAULT 1,
            added_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),

            CONSTRAINT uq_cart_items_user_product UNIQUE (user_id, product_id),
            CONSTRAINT ck_cart_items_quantity_positive CHECK (quantity > 0)
        );
    """)
    op.execute("CREATE INDEX idx_cart_items_user ON cart_items (user_id, added_at DESC);")
    # Eviction sweep deletes by product
    op.execute("CREATE INDEX idx_cart_items_product ON cart_items (product_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cart_items CASCADE;")
