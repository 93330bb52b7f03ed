"""Initial schema: organizations, programs, applications, reviews, publications and their events, grants

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

PROGRAM_STATUSES = ("draft", "submitted", "pending_changes", "changes_requested", "published", "unpublished")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    ]


def _has_table(conn, name: str) -> bool:
    return sa.inspect(conn).has_table(name)


def upgrade() -> None:
    conn = op.get_bind()

    if not _has_table(conn, "coalitions"):
        op.create_table(
            "coalitions",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(120), nullable=False, unique=True),
            *_timestamps(),
        )

    if not _has_table(conn, "organizations"):
        op.create_table(
            "organizations",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(120), nullable=False, unique=True),
            sa.Column("coalition_id", sa.Integer, sa.ForeignKey("coalitions.id"), nullable=True, index=True),
            *_timestamps(),
        )

    if not _has_table(conn, "users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("email", sa.String(255), nullable=False, unique=True),
            sa.Column("full_name", sa.String(160)),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("role", sa.String(50)),
            *_timestamps(),
        )

    if not _has_table(conn, "programs"):
        op.create_table(
            "programs",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("organization_id", sa.Integer, sa.ForeignKey("organizations.id"), nullable=False, index=True),
            sa.Column("coalition_id", sa.Integer, sa.ForeignKey("coalitions.id"), nullable=True),
            sa.Column("name", sa.String(200), nullable=False),
            sa.Column(
                "review_status",
                sa.Enum(*PROGRAM_STATUSES, name="program_review_status", native_enum=False, create_constraint=True),
                nullable=False,
                server_default="draft",
            ),
            sa.Column("review_note", sa.Text),
            sa.Column("org_can_unpublish", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("spots_mode", sa.String(20)),
            sa.Column("spots_count", sa.Integer),
            *_timestamps(),
        )

    if not _has_table(conn, "candidates"):
        op.create_table(
            "candidates",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("org_id", sa.Integer, nullable=False, index=True),
            sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True, index=True),
            sa.Column("name", sa.String(120), nullable=False),
            sa.Column("email", sa.String(254), index=True),
            *_timestamps(),
        )

    if not _has_table(conn, "applications"):
        op.create_table(
            "applications",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("org_id", sa.Integer, nullable=False, index=True),
            sa.Column("program_id", sa.Integer, sa.ForeignKey("programs.id"), nullable=False, index=True),
            sa.Column("candidate_id", sa.Integer, sa.ForeignKey("candidates.id"), nullable=True),
            sa.Column("status", sa.String(50)),
            sa.Column("current_publication_id", sa.Integer, nullable=True),
            *_timestamps(),
        )

    if not _has_table(conn, "application_reviews"):
        op.create_table(
            "application_reviews",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("application_id", sa.Integer, sa.ForeignKey("applications.id"), nullable=False, index=True),
            sa.Column("reviewer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
            sa.Column("ratings", sa.JSON, nullable=False),
            sa.Column("comments", sa.Text),
            sa.Column("score", sa.Float),
            sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
            sa.Column("decision", sa.String(50)),
            sa.Column("submitted_at", sa.DateTime),
            *_timestamps(),
            # one record per reviewer, not per application
            sa.UniqueConstraint("application_id", "reviewer_id", name="uq_application_reviews_application_reviewer"),
        )

    if not _has_table(conn, "application_publications"):
        op.create_table(
            "application_publications",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("org_id", sa.Integer, nullable=False, index=True),
            sa.Column("application_id", sa.Integer, sa.ForeignKey("applications.id"), nullable=False, index=True),
            sa.Column("published_by", sa.Integer, sa.ForeignKey("users.id")),
            sa.Column("published_at", sa.DateTime, nullable=False),
            sa.Column("unpublished_at", sa.DateTime),
            sa.Column("version", sa.Integer, nullable=False, server_default="1"),
            sa.Column("visibility", sa.JSON, nullable=False),
            sa.Column("payload", sa.JSON),
            sa.Column("acceptance_tag", sa.String(80)),
            sa.Column("claim_deadline", sa.DateTime),
        )
        with op.batch_alter_table("applications") as b:
            b.create_foreign_key(
                "fk_applications_current_publication",
                "application_publications",
                ["current_publication_id"],
                ["id"],
            )

    if not _has_table(conn, "application_publication_events"):
        op.create_table(
            "application_publication_events",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("publication_id", sa.Integer, sa.ForeignKey("application_publications.id"), nullable=False, index=True),
            sa.Column("event_type", sa.String(30), nullable=False),
            sa.Column("actor_id", sa.Integer, sa.ForeignKey("users.id")),
            sa.Column("note", sa.Text),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )

    if not _has_table(conn, "admin_grants"):
        op.create_table(
            "admin_grants",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True),
            sa.Column("role", sa.String(30), nullable=False, server_default="admin"),
            sa.Column("scope_type", sa.String(20), nullable=False),
            sa.Column("scope_id", sa.Integer, nullable=False),
            sa.Column("status", sa.String(20), nullable=False, server_default="active"),
            *_timestamps(),
            sa.UniqueConstraint("scope_type", "scope_id", "user_id", name="uq_admin_grants_scope_user"),
        )

    if not _has_table(conn, "notifications"):
        op.create_table(
            "notifications",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("org_id", sa.Integer, nullable=False, index=True),
            sa.Column("application_id", sa.Integer, sa.ForeignKey("applications.id"), nullable=False),
            sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
            sa.Column("type", sa.String(50)),
            sa.Column("title", sa.String(255)),
            sa.Column("message", sa.Text),
            sa.Column("data", sa.JSON),
            sa.Column("read_at", sa.DateTime),
            *_timestamps(),
        )


def downgrade() -> None:
    with op.batch_alter_table("applications") as b:
        b.drop_constraint("fk_applications_current_publication", type_="foreignkey")
    for name in ("notifications", "admin_grants", "application_publication_events", "application_publications",
                 "application_reviews", "applications", "candidates", "programs", "users", "organizations", "coalitions"):
        op.drop_table(name)
