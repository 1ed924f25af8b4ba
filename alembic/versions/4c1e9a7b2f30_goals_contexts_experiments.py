"""goals, contexts and experiments

Revision ID: 4c1e9a7b2f30
Revises:
Create Date: 2026-10-17 09:12:41.502113

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c1e9a7b2f30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the goal, context and experiment tables."""
    op.create_table(
        "goals",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("user_id", sa.Text, nullable=False, server_default=""),
        sa.Column("title", sa.Text, nullable=False, server_default=""),
        sa.Column("target_metric", sa.Text, nullable=False, server_default=""),
        sa.Column("ad_platform", sa.Text, nullable=False, server_default=""),
        sa.Column("current_cycle", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.Text, nullable=False),
    )

    op.create_table(
        "contexts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("raw_input", sa.Text, nullable=False, server_default=""),
        sa.Column("structured_analysis", sa.Text, nullable=True),
        sa.Column("goal_id", sa.Text, sa.ForeignKey("goals.id"), nullable=True),
        sa.Column("created_at", sa.Text, nullable=False),
    )
    op.create_index("idx_contexts_user_created", "contexts", ["user_id", "created_at"])

    op.create_table(
        "experiments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("hypothesis", sa.Text, nullable=True),
        sa.Column("variable", sa.Text, nullable=True),
        sa.Column("expected_result", sa.JSON, nullable=True),
        sa.Column("target_value", sa.Float, nullable=True),
        sa.Column("cutoff_line", sa.Text, nullable=True),
        sa.Column("ice_score", sa.Integer, nullable=True),
        sa.Column("context_id", sa.Integer, sa.ForeignKey("contexts.id"), nullable=True),
        sa.Column("goal_id", sa.Text, sa.ForeignKey("goals.id"), nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="backlog"),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            "status IN ('backlog', 'em_execucao', 'archived')",
            name="ck_experiments_status",
        ),
        sa.CheckConstraint("goal_id <> ''", name="ck_experiments_goal_id"),
    )
    op.create_index("idx_experiments_user_status", "experiments", ["user_id", "status"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_experiments_user_status", table_name="experiments")
    op.drop_table("experiments")
    op.drop_index("idx_contexts_user_created", table_name="contexts")
    op.drop_table("contexts")
    op.drop_table("goals")
