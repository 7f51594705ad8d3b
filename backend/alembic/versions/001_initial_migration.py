"""Initial migration: profiles, events, categories, registrations, matches

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profile",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "event",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organizer_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("registration_phase", sa.String(), nullable=False, server_default="open"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["organizer_id"], ["profile.id"]),
    )
    op.create_index("ix_event_organizer_id", "event", ["organizer_id"])

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("belt", sa.String(), nullable=True),
        sa.Column("age_group", sa.String(), nullable=True),
        sa.Column("min_weight", sa.Float(), nullable=True),
        sa.Column("max_weight", sa.Float(), nullable=True),
        sa.Column("bracket_capacity", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("bracket_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bracket_state", sa.String(), nullable=False, server_default="preview"),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "eventcategory",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["category.id"]),
        sa.UniqueConstraint("event_id", "category_id", name="uq_event_category"),
    )
    op.create_index("ix_eventcategory_event_id", "eventcategory", ["event_id"])

    op.create_table(
        "registration",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("athlete_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("bracket_slot", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["category.id"]),
        sa.ForeignKeyConstraint(["athlete_id"], ["profile.id"]),
        sa.UniqueConstraint("event_id", "category_id", "bracket_slot", name="uq_registration_slot"),
    )
    op.create_index("ix_registration_event_category", "registration", ["event_id", "category_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column("match_no", sa.Integer(), nullable=False),
        sa.Column("slot_a", sa.Integer(), nullable=False),
        sa.Column("slot_b", sa.Integer(), nullable=False),
        sa.Column("athlete_a_id", sa.Integer(), nullable=True),
        sa.Column("athlete_b_id", sa.Integer(), nullable=True),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("is_bye", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["category.id"]),
        sa.ForeignKeyConstraint(["athlete_a_id"], ["profile.id"]),
        sa.ForeignKeyConstraint(["athlete_b_id"], ["profile.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["profile.id"]),
        sa.UniqueConstraint("event_id", "category_id", "match_no", name="uq_match_category_no"),
    )
    op.create_index("ix_match_event_id", "match", ["event_id"])
    op.create_index("ix_match_category_id", "match", ["category_id"])


def downgrade() -> None:
    op.drop_table("match")
    op.drop_table("registration")
    op.drop_table("eventcategory")
    op.drop_table("category")
    op.drop_table("event")
    op.drop_table("profile")
