"""Initial schema: users, players, tournaments, teams, matches, credit log"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("player", "organizer", "superadmin")
MATCH_STATUSES = ("scheduled", "live", "completed")


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False, unique=True),
        sa.Column(
            "role",
            sa.Enum(*USER_ROLES, name="user_role"),
            nullable=False,
            server_default="player",
        ),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
    )

    op.create_table(
        "tournament",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("organizer_id", sa.String(), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("scorer_pin", sa.String(), nullable=True, server_default="0000"),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("court_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("best_of", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("points_to", sa.Integer(), nullable=False, server_default="21"),
        sa.Column("win_by", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("max_points", sa.Integer(), nullable=True, server_default="30"),
        sa.Column("points_per_win", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("points_per_loss", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ranking_criteria", sa.JSON(), nullable=True),
    )

    op.create_table(
        "team",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "tournament_id", sa.String(), sa.ForeignKey("tournament.id"), nullable=False
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("player_ids", sa.JSON(), nullable=False),
        sa.Column(
            "owner_account_id", sa.String(), sa.ForeignKey("user.id"), nullable=True
        ),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("tournament_id", "name", name="uq_team_tournament_name"),
    )

    op.create_table(
        "match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "tournament_id", sa.String(), sa.ForeignKey("tournament.id"), nullable=False
        ),
        sa.Column("side_a_id", sa.String(), sa.ForeignKey("team.id"), nullable=False),
        sa.Column("side_b_id", sa.String(), sa.ForeignKey("team.id"), nullable=False),
        sa.Column("sets", sa.JSON(), nullable=False),
        sa.Column("best_of", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("points_to", sa.Integer(), nullable=False, server_default="21"),
        sa.Column("win_by", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("max_points", sa.Integer(), nullable=True, server_default="30"),
        sa.Column("court", sa.Integer(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*MATCH_STATUSES, name="match_status"),
            nullable=False,
            server_default="scheduled",
        ),
        sa.Column("winner_id", sa.String(), sa.ForeignKey("team.id"), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_match_tournament_status", "match", ["tournament_id", "status"]
    )

    op.create_table(
        "credit_log",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("match_id", sa.String(), sa.ForeignKey("match.id"), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("credit_log")
    op.drop_index("ix_match_tournament_status", table_name="match")
    op.drop_table("match")
    op.drop_table("team")
    op.drop_table("tournament")
    op.drop_table("player")
    op.drop_table("user")
    sa.Enum(name="match_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
