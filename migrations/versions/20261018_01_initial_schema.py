"""Initial schema: accounts, leaders, ratings, polls, tickets, banners, settings."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None

_GENDERS = ("male", "female", "other")
_ENUM_NAMES = (
    "user_role",
    "gender",
    "election_type",
    "leader_status",
    "poll_question_type",
    "ticket_status",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:  # noqa: D401
    """Create all tables and constraints."""

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("role", sa.Enum("ADMIN", "USER", name="user_role"), nullable=False),
        sa.Column("gender", sa.Enum(*_GENDERS, name="gender")),
        sa.Column("age", sa.Integer()),
        sa.Column("state", sa.String(length=128)),
        sa.Column("mp_constituency", sa.String(length=255)),
        sa.Column("mla_constituency", sa.String(length=255)),
        sa.Column("panchayat", sa.String(length=255)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "leaders",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("party_name", sa.String(length=255), nullable=False),
        sa.Column("gender", postgresql.ENUM(*_GENDERS, name="gender", create_type=False), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("photo_url", sa.String(length=1024)),
        sa.Column("constituency", sa.String(length=255), nullable=False),
        sa.Column("native_address", sa.Text()),
        sa.Column(
            "election_type",
            sa.Enum("national", "state", "panchayat", name="election_type"),
            nullable=False,
        ),
        sa.Column("location", sa.JSON(), nullable=False),
        sa.Column("previous_elections", sa.JSON(), nullable=False),
        sa.Column("manifesto_url", sa.String(length=1024)),
        sa.Column("twitter_url", sa.String(length=1024)),
        sa.Column("added_by_user_id", sa.String(length=36)),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name="leader_status"),
            nullable=False,
        ),
        sa.Column("admin_comment", sa.Text()),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("review_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_leaders"),
        sa.ForeignKeyConstraint(
            ["added_by_user_id"],
            ["users.id"],
            name="fk_leaders_added_by_user_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_leaders_status", "leaders", ["status"])
    op.create_index("ix_leaders_added_by_user_id", "leaders", ["added_by_user_id"])

    op.create_table(
        "ratings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("leader_id", sa.String(length=36), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("social_behaviour", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_ratings"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_ratings_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["leader_id"], ["leaders.id"], name="fk_ratings_leader_id_leaders", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("user_id", "leader_id", name="uq_ratings_user_leader"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_rating_range"),
    )
    op.create_index("ix_ratings_leader_id", "ratings", ["leader_id"])

    op.create_table(
        "polls",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("active_until", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_polls"),
    )

    op.create_table(
        "poll_questions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("poll_id", sa.String(length=36), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column(
            "question_type",
            sa.Enum("yes_no", "multiple_choice", name="poll_question_type"),
            nullable=False,
        ),
        sa.Column("question_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_poll_questions"),
        sa.ForeignKeyConstraint(
            ["poll_id"], ["polls.id"], name="fk_poll_questions_poll_id_polls", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_poll_questions_poll_id", "poll_questions", ["poll_id"])

    op.create_table(
        "poll_options",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("question_id", sa.String(length=36), nullable=False),
        sa.Column("option_text", sa.String(length=512), nullable=False),
        sa.Column("option_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name="pk_poll_options"),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["poll_questions.id"],
            name="fk_poll_options_question_id_poll_questions",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_poll_options_question_id", "poll_options", ["question_id"])

    op.create_table(
        "poll_responses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("poll_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_poll_responses"),
        sa.ForeignKeyConstraint(
            ["poll_id"], ["polls.id"], name="fk_poll_responses_poll_id_polls", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_poll_responses_user_id_users", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("poll_id", "user_id", name="uq_poll_responses_poll_user"),
    )
    op.create_index("ix_poll_responses_poll_id", "poll_responses", ["poll_id"])

    op.create_table(
        "poll_answers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("response_id", sa.String(length=36), nullable=False),
        sa.Column("question_id", sa.String(length=36), nullable=False),
        sa.Column("option_id", sa.String(length=36), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_poll_answers"),
        sa.ForeignKeyConstraint(
            ["response_id"],
            ["poll_responses.id"],
            name="fk_poll_answers_response_id_poll_responses",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["question_id"],
            ["poll_questions.id"],
            name="fk_poll_answers_question_id_poll_questions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["option_id"],
            ["poll_options.id"],
            name="fk_poll_answers_option_id_poll_options",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("response_id", "question_id", name="uq_poll_answers_response_question"),
    )
    op.create_index("ix_poll_answers_option_id", "poll_answers", ["option_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(length=1024)),
        sa.Column("start_time", sa.DateTime(timezone=True)),
        sa.Column("end_time", sa.DateTime(timezone=True)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("poll_id", sa.String(length=36)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
        sa.ForeignKeyConstraint(
            ["poll_id"], ["polls.id"], name="fk_notifications_poll_id_polls", ondelete="SET NULL"
        ),
    )

    op.create_table(
        "support_tickets",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36)),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("user_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("open", "in-progress", "resolved", "closed", name="ticket_status"),
            nullable=False,
        ),
        sa.Column("admin_notes", sa.Text()),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_support_tickets"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_support_tickets_user_id_users", ondelete="SET NULL"
        ),
    )
    op.create_index("ix_support_tickets_status", "support_tickets", ["status"])

    op.create_table(
        "site_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("maintenance_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("maintenance_start", sa.DateTime(timezone=True)),
        sa.Column("maintenance_end", sa.DateTime(timezone=True)),
        sa.Column("maintenance_message", sa.Text()),
        sa.Column("contact_email", sa.String(length=320)),
        sa.Column("contact_phone", sa.String(length=32)),
        sa.Column("contact_twitter", sa.String(length=1024)),
        sa.Column("contact_linkedin", sa.String(length=1024)),
        sa.Column("contact_youtube", sa.String(length=1024)),
        sa.Column("contact_facebook", sa.String(length=1024)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_site_settings"),
        sa.CheckConstraint("id = 1", name="ck_site_settings_singleton"),
    )


def downgrade() -> None:  # noqa: D401
    """Drop all tables and enum types."""

    for table in (
        "site_settings",
        "support_tickets",
        "notifications",
        "poll_answers",
        "poll_responses",
        "poll_options",
        "poll_questions",
        "polls",
        "ratings",
        "leaders",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name in _ENUM_NAMES:
            op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))
