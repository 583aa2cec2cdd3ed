"""Add visitor enquiries."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261019_0002"
down_revision: str | None = "20261019_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

TIMESTAMP_DEFAULT = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    op.create_table(
        "enquiries",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("property_id", sa.String(length=64), nullable=True),
        sa.Column(
            "property_label",
            sa.String(length=255),
            server_default="General Enquiry",
            nullable=False,
        ),
        sa.Column("contact_type", sa.String(length=32), nullable=True),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=TIMESTAMP_DEFAULT,
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=TIMESTAMP_DEFAULT,
            nullable=False,
        ),
    )
    op.create_index("ix_enquiries_email", "enquiries", ["email"], unique=False)
    op.create_index("ix_enquiries_property_id", "enquiries", ["property_id"], unique=False)
    op.create_index(
        "ix_enquiries_created_at",
        "enquiries",
        ["created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_enquiries_created_at", table_name="enquiries")
    op.drop_index("ix_enquiries_property_id", table_name="enquiries")
    op.drop_index("ix_enquiries_email", table_name="enquiries")
    op.drop_table("enquiries")
