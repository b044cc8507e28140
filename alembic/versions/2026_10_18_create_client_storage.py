from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "5b1f0c7e9a2d"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "client_storage",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("client_id", sa.String(128), nullable=False),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.current_timestamp(), nullable=False),
        sa.UniqueConstraint("client_id", "key", name="uq_client_storage_client_key"),
    )
    op.create_index("ix_client_storage_client_id", "client_storage", ["client_id"])

def downgrade():
    op.drop_index("ix_client_storage_client_id", table_name="client_storage")
    op.drop_table("client_storage")
