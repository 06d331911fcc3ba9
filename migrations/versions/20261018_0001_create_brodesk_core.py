"""create brodesk core tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=False),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("NOW()"),
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=False), primary_key=True),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        _created_at_column(),
    )

    op.create_table(
        "teams",
        _id_column(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("team_lead_user_id", UUID(as_uuid=False), nullable=True),
        _created_at_column(),
        sa.ForeignKeyConstraint(["team_lead_user_id"], ["profiles.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "categories",
        _id_column(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("team_id", UUID(as_uuid=False), nullable=True),
        _created_at_column(),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "user_roles",
        _id_column(),
        sa.Column("user_id", UUID(as_uuid=False), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("team_id", UUID(as_uuid=False), nullable=True),
        _created_at_column(),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("user_id", "role", name="uk_user_roles_user_role"),
        sa.CheckConstraint(
            "role IN ('student', 'team_member', 'admin', 'super_admin')",
            name="ck_user_roles_role_valid",
        ),
    )

    op.execute("CREATE SEQUENCE ticket_number_seq START 1")

    op.create_table(
        "tickets",
        _id_column(),
        sa.Column(
            "ticket_number",
            sa.String(length=20),
            nullable=False,
            unique=True,
            server_default=sa.text("'BRO' || lpad(nextval('ticket_number_seq')::text, 5, '0')"),
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("category_id", UUID(as_uuid=False), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("reporter_id", UUID(as_uuid=False), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("assigned_user_id", UUID(as_uuid=False), nullable=True),
        sa.Column("team_id", UUID(as_uuid=False), nullable=True),
        sa.Column("sentiment_score", sa.Float(), nullable=True),
        _created_at_column(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", UUID(as_uuid=False), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.ForeignKeyConstraint(["reporter_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["assigned_user_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["resolved_by"], ["profiles.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('open', 'in_progress', 'need_info', 'resolved', 'closed')",
            name="ck_tickets_status_valid",
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')",
            name="ck_tickets_priority_valid",
        ),
    )

    op.create_table(
        "ticket_comments",
        _id_column(),
        sa.Column("ticket_id", UUID(as_uuid=False), nullable=False),
        sa.Column("author_id", UUID(as_uuid=False), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at_column(),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["profiles.id"]),
    )

    op.create_table(
        "ticket_attachments",
        _id_column(),
        sa.Column("ticket_id", UUID(as_uuid=False), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("file_type", sa.String(length=100), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("uploaded_by", UUID(as_uuid=False), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["profiles.id"]),
    )

    op.create_table(
        "ticket_history",
        _id_column(),
        sa.Column("ticket_id", UUID(as_uuid=False), nullable=False),
        sa.Column("field_name", sa.String(length=50), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("changed_by", UUID(as_uuid=False), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["changed_by"], ["profiles.id"]),
    )

    op.create_index("idx_tickets_status", "tickets", ["status"], unique=False)
    op.create_index("idx_tickets_team_id", "tickets", ["team_id"], unique=False)
    op.create_index("idx_tickets_reporter_id", "tickets", ["reporter_id"], unique=False)
    op.create_index("idx_ticket_comments_ticket_id", "ticket_comments", ["ticket_id"])
    op.create_index("idx_ticket_attachments_ticket_id", "ticket_attachments", ["ticket_id"])
    op.create_index("idx_ticket_history_ticket_id", "ticket_history", ["ticket_id"])

    # Row-level change feed consumed by board sessions via LISTEN ticket_changes.
    op.execute(
        """
        CREATE OR REPLACE FUNCTION tickets_notify_change() RETURNS trigger AS $$
        DECLARE
            payload json;
        BEGIN
            IF TG_OP = 'DELETE' THEN
                payload := json_build_object(
                    'op', 'delete',
                    'id', OLD.id,
                    'team_id', NULL,
                    'reporter_id', NULL,
                    'old_team_id', OLD.team_id,
                    'old_reporter_id', OLD.reporter_id
                );
            ELSIF TG_OP = 'UPDATE' THEN
                payload := json_build_object(
                    'op', 'update',
                    'id', NEW.id,
                    'team_id', NEW.team_id,
                    'reporter_id', NEW.reporter_id,
                    'old_team_id', OLD.team_id,
                    'old_reporter_id', OLD.reporter_id
                );
            ELSE
                payload := json_build_object(
                    'op', 'insert',
                    'id', NEW.id,
                    'team_id', NEW.team_id,
                    'reporter_id', NEW.reporter_id,
                    'old_team_id', NULL,
                    'old_reporter_id', NULL
                );
            END IF;
            PERFORM pg_notify('ticket_changes', payload::text);
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_tickets_notify_change
        AFTER INSERT OR UPDATE OR DELETE ON tickets
        FOR EACH ROW EXECUTE FUNCTION tickets_notify_change()
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_tickets_notify_change ON tickets")
    op.execute("DROP FUNCTION IF EXISTS tickets_notify_change()")

    op.drop_index("idx_ticket_history_ticket_id", table_name="ticket_history")
    op.drop_index("idx_ticket_attachments_ticket_id", table_name="ticket_attachments")
    op.drop_index("idx_ticket_comments_ticket_id", table_name="ticket_comments")
    op.drop_index("idx_tickets_reporter_id", table_name="tickets")
    op.drop_index("idx_tickets_team_id", table_name="tickets")
    op.drop_index("idx_tickets_status", table_name="tickets")

    op.drop_table("ticket_history")
    op.drop_table("ticket_attachments")
    op.drop_table("ticket_comments")
    op.drop_table("tickets")
    op.execute("DROP SEQUENCE IF EXISTS ticket_number_seq")
    op.drop_table("user_roles")
    op.drop_table("categories")
    op.drop_table("teams")
    op.drop_table("profiles")
