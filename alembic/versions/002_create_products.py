"""002: create products table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id              VARCHAR(64)  PRIMARY KEY,
            title           VARCHAR(200) NOT NULL,
            description     TEXT         NOT NULL DEFAULT '',
            price_cents     BIGINT       NOT NULL,
            category        VARCHAR(32)  NOT NULL,
            condition       VARCHAR(16)  NOT NULL DEFAULT 'good',
            seller_id       VARCHAR(64)  NOT NULL,
            is_available    BOOLEAN      NOT NULL DEFAULT TRUE,
            version         INTEGER      NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),

            CONSTRAINT ck_products_price_non_negative CHECK (price_cents >= 0),
            CONSTRAINT ck_products_version_non_negative CHECK (version >= 0),
            CONSTRAINT ck_products_category CHECK (
                category IN ('electronics', 'clothing', 'home-garden', 'books', 'sports',
                             'toys', 'automotive', 'health-beauty', 'music', 'other')
            ),
            CONSTRAINT ck_products_condition CHECK (
                condition IN ('poor', 'fair', 'good', 'excellent')
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_products_available_created "
        "ON products (created_at DESC, id DESC) WHERE is_available = TRUE;"
    )
    op.execute(
        "CREATE INDEX idx_products_seller ON products (seller_id, created_at DESC, id DESC);"
    )
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    # Sold or unlisted products never become available again
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_products_no_relist()
        RETURNS TRIGGER AS $$
        BEGIN
            IF OLD.is_available = FALSE AND NEW.is_available = TRUE THEN
                RAISE EXCEPTION 'product % cannot become available again', OLD.id
                    USING ERRCODE = 'check_violation';
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_products_no_relist
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_products_no_relist();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_products_no_relist();")
