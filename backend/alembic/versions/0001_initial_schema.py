"""Create members, locations, reservations, applications and activity logs."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

member_grade = sa.Enum(
    "EGG", "HATCHING", "CHICK", "YOUNG_BIRD", "ROOSTER", name="member_grade"
)
application_status = sa.Enum(
    "CONFIRMED", "WAITING", "CANCELLED", name="application_status"
)
activity_type = sa.Enum(
    "LOGIN",
    "LOGOUT",
    "MEMBER_CREATE",
    "MEMBER_UPDATE",
    "MEMBER_DELETE",
    "GRADE_UPGRADE",
    "RESERVATION_CREATE",
    "RESERVATION_UPDATE",
    "RESERVATION_DELETE",
    "RESERVATION_APPLY",
    "RESERVATION_CANCEL",
    "SEARCH",
    "VIEW",
    "ERROR",
    name="activity_type",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("login_id", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("birth_year", sa.Integer(), nullable=False),
        sa.Column("grade", member_grade, nullable=False),
        sa.Column("profile_image_url", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("login_id", name="uq_members_login_id"),
    )

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=500), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ux_locations_name_lower",
        "locations",
        [sa.text("lower(name)")],
        unique=True,
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "creator_id",
            sa.Integer(),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "location_id",
            sa.Integer(),
            sa.ForeignKey("locations.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("reservation_time", sa.Time(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "max_capacity > 0", name="ck_reservations_max_capacity_positive"
        ),
    )
    op.create_index(
        "ix_reservations_date_time",
        "reservations",
        ["reservation_date", "reservation_time"],
    )
    op.create_index("ix_reservations_creator", "reservations", ["creator_id"])
    op.create_index("ix_reservations_location", "reservations", ["location_id"])

    op.create_table(
        "reservation_applications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "member_id",
            sa.Integer(),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reservation_id",
            sa.Integer(),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", application_status, nullable=False),
        sa.Column("note", sa.String(length=500), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "member_id", "reservation_id", name="uq_application_member_reservation"
        ),
    )
    op.create_index(
        "ix_application_reservation_status_applied",
        "reservation_applications",
        ["reservation_id", "status", "applied_at"],
    )
    op.create_index(
        "ix_application_member", "reservation_applications", ["member_id"]
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("member_id", sa.Integer(), nullable=True),
        sa.Column("member_login_id", sa.String(length=50), nullable=True),
        sa.Column("activity_type", activity_type, nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("request_uri", sa.String(length=500), nullable=True),
        sa.Column("http_method", sa.String(length=10), nullable=True),
        sa.Column("correlation_id", sa.String(length=64), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_activity_logs_member_id", "activity_logs", ["member_id"])
    op.create_index(
        "ix_activity_logs_activity_type", "activity_logs", ["activity_type"]
    )
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_created_at", table_name="activity_logs")
    op.drop_index("ix_activity_logs_activity_type", table_name="activity_logs")
    op.drop_index("ix_activity_logs_member_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_application_member", table_name="reservation_applications")
    op.drop_index(
        "ix_application_reservation_status_applied",
        table_name="reservation_applications",
    )
    op.drop_table("reservation_applications")
    op.drop_index("ix_reservations_location", table_name="reservations")
    op.drop_index("ix_reservations_creator", table_name="reservations")
    op.drop_index("ix_reservations_date_time", table_name="reservations")
    op.drop_table("reservations")
    op.drop_index("ux_locations_name_lower", table_name="locations")
    op.drop_table("locations")
    op.drop_table("members")
    activity_type.drop(op.get_bind(), checkfirst=True)
    application_status.drop(op.get_bind(), checkfirst=True)
    member_grade.drop(op.get_bind(), checkfirst=True)
