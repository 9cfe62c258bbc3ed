"""create rsvp_responses and search_quotas

Revision ID: 5c1e0a7f3b21
Revises: 
Create Date: 2026-04-12 10:04:51.118203

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e0a7f3b21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Respuestas RSVP por fila de la hoja + cupo de búsquedas por cliente."""
    op.create_table(
        "rsvp_responses",
        sa.Column("row_index", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("english_name", sa.String(length=200), nullable=False),
        sa.Column("arabic_name", sa.String(length=200), nullable=False),
        sa.Column("family_group", sa.String(length=200), nullable=True),
        sa.Column("attending", sa.Boolean(), nullable=False),
        sa.Column("confirmation_text", sa.String(length=40), nullable=False),
        sa.Column("client_language", sa.Enum("en", "ar", name="languageenum"), nullable=False),
        sa.Column("responded_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("row_index"),
    )
    op.create_index(op.f("ix_rsvp_responses_family_group"), "rsvp_responses", ["family_group"], unique=False)

    op.create_table(
        "search_quotas",
        sa.Column("client_id", sa.String(length=128), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("window_start", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("client_id"),
    )


def downgrade() -> None:
    op.drop_table("search_quotas")
    op.drop_index(op.f("ix_rsvp_responses_family_group"), table_name="rsvp_responses")
    op.drop_table("rsvp_responses")
    sa.Enum(name="languageenum").drop(op.get_bind(), checkfirst=True)
