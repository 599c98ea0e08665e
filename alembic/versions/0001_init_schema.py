"""Initial campaign pipeline schema"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    campaign_status_enum = sa.Enum("draft", "active", "paused", "completed", name="campaign_status")
    campaign_page_status_enum = sa.Enum(
        "draft", "generated", "reviewed", "published", name="campaign_page_status"
    )

    op.create_table(
        "campaigns",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("subaccount_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", campaign_status_enum, nullable=False, server_default="draft"),
        sa.Column("business_name", sa.Text(), nullable=True),
        sa.Column("business_type", sa.String(length=32), nullable=True),
        sa.Column("website_url", sa.Text(), nullable=True),
        sa.Column("tone_of_voice", sa.Text(), nullable=True),
        sa.Column("template_config", sa.JSON(), nullable=False),
        sa.Column("is_finalized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_pages", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_campaigns_subaccount", "campaigns", ["subaccount_id"])

    op.create_table(
        "campaign_pages",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "campaign_id",
            sa.String(length=36),
            sa.ForeignKey("campaigns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subaccount_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("data_values", sa.JSON(), nullable=False),
        sa.Column("status", campaign_page_status_enum, nullable=False, server_default="draft"),
        sa.Column("sections_content", sa.JSON(), nullable=False),
        sa.Column("checkpoint_sections", sa.JSON(), nullable=True),
        sa.Column("meta_title", sa.Text(), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("ordering", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_campaign_pages_campaign", "campaign_pages", ["campaign_id"])
    op.create_index("idx_campaign_pages_slug", "campaign_pages", ["slug"])


def downgrade() -> None:
    op.drop_index("idx_campaign_pages_slug", table_name="campaign_pages")
    op.drop_index("idx_campaign_pages_campaign", table_name="campaign_pages")
    op.drop_table("campaign_pages")

    op.drop_index("idx_campaigns_subaccount", table_name="campaigns")
    op.drop_table("campaigns")

    sa.Enum(name="campaign_page_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="campaign_status").drop(op.get_bind(), checkfirst=True)
