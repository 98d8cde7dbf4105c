"""Initial LoR Tracker schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = postgresql.ENUM("STUDENT", "ALUMNI", "FACULTY", "ADMIN", name="user_role", create_type=False)
user_status_enum = postgresql.ENUM("ACTIVE", "INACTIVE", "PENDING", name="user_status", create_type=False)
verification_status_enum = postgresql.ENUM(
    "PENDING", "VERIFIED", "REJECTED", name="verification_status", create_type=False
)
certificate_type_enum = postgresql.ENUM("GRE", "GMAT", "CAT", "MAT", "OTHER", name="certificate_type", create_type=False)
submission_status_enum = postgresql.ENUM(
    "SUBMITTED",
    "RESUBMISSION",
    "APPROVED",
    "REJECTED",
    "COMPLETED",
    name="submission_status",
    create_type=False,
)
record_state_enum = postgresql.ENUM("ACTIVE", "ARCHIVED", name="record_state", create_type=False)
file_type_enum = postgresql.ENUM("DRAFT", "FINAL", "CERTIFICATE", name="file_type", create_type=False)

_ENUMS = (
    user_role_enum,
    user_status_enum,
    verification_status_enum,
    certificate_type_enum,
    submission_status_enum,
    record_state_enum,
    file_type_enum,
)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()))
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    for enum in _ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("status", user_status_enum, nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_status", "users", ["status"])
    op.create_index("ix_users_role_status", "users", ["role", "status"])

    op.create_table(
        "student_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", name="fk_student_profiles_user_id_users"), nullable=False),
        sa.Column("registration_number", sa.String(length=64), nullable=False),
        sa.Column("is_alumni", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("department", sa.String(length=255), nullable=False),
        sa.Column("verification_status", verification_status_enum, nullable=False),
        sa.Column("employment_json", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_student_profiles_id", "student_profiles", ["id"])
    op.create_index("ix_student_profiles_user_id", "student_profiles", ["user_id"], unique=True)
    op.create_index(
        "ix_student_profiles_registration_number", "student_profiles", ["registration_number"], unique=True
    )
    op.create_index("ix_student_profiles_is_alumni", "student_profiles", ["is_alumni"])
    op.create_index("ix_student_profiles_department", "student_profiles", ["department"])
    op.create_index("ix_student_profiles_verification_status", "student_profiles", ["verification_status"])
    op.create_index("ix_student_profiles_is_active", "student_profiles", ["is_active"])

    op.create_table(
        "faculty_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", name="fk_faculty_profiles_user_id_users"), nullable=False),
        sa.Column("faculty_code", sa.String(length=64), nullable=False),
        sa.Column("department", sa.String(length=255), nullable=False),
        sa.Column("designation", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_faculty_profiles_id", "faculty_profiles", ["id"])
    op.create_index("ix_faculty_profiles_user_id", "faculty_profiles", ["user_id"], unique=True)
    op.create_index("ix_faculty_profiles_faculty_code", "faculty_profiles", ["faculty_code"], unique=True)
    op.create_index("ix_faculty_profiles_department", "faculty_profiles", ["department"])
    op.create_index("ix_faculty_profiles_is_active", "faculty_profiles", ["is_active"])

    op.create_table(
        "student_target_universities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "profile_id",
            sa.Integer(),
            sa.ForeignKey(
                "student_profiles.id",
                name="fk_student_target_universities_profile_id_student_profiles",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("university", sa.String(length=255), nullable=False),
        sa.Column("program", sa.String(length=255), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_student_target_universities_id", "student_target_universities", ["id"])
    op.create_index("ix_student_target_universities_profile_id", "student_target_universities", ["profile_id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "student_id",
            sa.Integer(),
            sa.ForeignKey("student_profiles.id", name="fk_submissions_student_id_student_profiles"),
            nullable=False,
        ),
        sa.Column(
            "faculty_id",
            sa.Integer(),
            sa.ForeignKey("faculty_profiles.id", name="fk_submissions_faculty_id_faculty_profiles"),
            nullable=False,
        ),
        sa.Column("status", submission_status_enum, nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("university_name", sa.String(length=200), nullable=True),
        sa.Column("purpose", sa.String(length=500), nullable=True),
        sa.Column("is_alumni", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("current_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("faculty_notes", sa.Text(), nullable=True),
        sa.Column("record_state", record_state_enum, nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("current_version >= 1", name="ck_submissions_current_version_positive"),
    )
    op.create_index("ix_submissions_id", "submissions", ["id"])
    op.create_index("ix_submissions_student_id", "submissions", ["student_id"])
    op.create_index("ix_submissions_faculty_id", "submissions", ["faculty_id"])
    op.create_index("ix_submissions_status", "submissions", ["status"])
    op.create_index("ix_submissions_deadline", "submissions", ["deadline"])
    op.create_index("ix_submissions_record_state", "submissions", ["record_state"])
    op.create_index("ix_submissions_faculty_status", "submissions", ["faculty_id", "status"])
    op.create_index("ix_submissions_student_status", "submissions", ["student_id", "status"])
    op.create_index("ix_submissions_status_deadline", "submissions", ["status", "deadline"])
    op.create_index(
        "uq_submissions_active_pair",
        "submissions",
        ["student_id", "faculty_id"],
        unique=True,
        postgresql_where=sa.text("record_state = 'ACTIVE'"),
        sqlite_where=sa.text("record_state = 'ACTIVE'"),
    )

    op.create_table(
        "submission_audit_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "submission_id",
            sa.Integer(),
            sa.ForeignKey(
                "submissions.id",
                name="fk_submission_audit_entries_submission_id_submissions",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "actor_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_submission_audit_entries_actor_id_users"),
            nullable=False,
        ),
        sa.Column("from_status", submission_status_enum, nullable=True),
        sa.Column("to_status", submission_status_enum, nullable=False),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.UniqueConstraint("submission_id", "position", name="uq_submission_audit_entries_position"),
    )
    op.create_index("ix_submission_audit_entries_id", "submission_audit_entries", ["id"])
    op.create_index("ix_submission_audit_entries_submission_id", "submission_audit_entries", ["submission_id"])
    op.create_index("ix_submission_audit_entries_actor_id", "submission_audit_entries", ["actor_id"])

    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "submission_id",
            sa.Integer(),
            sa.ForeignKey("submissions.id", name="fk_files_submission_id_submissions"),
            nullable=True,
        ),
        sa.Column(
            "student_profile_id",
            sa.Integer(),
            sa.ForeignKey("student_profiles.id", name="fk_files_student_profile_id_student_profiles"),
            nullable=True,
        ),
        sa.Column("type", file_type_enum, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("uploaded_by", sa.Integer(), sa.ForeignKey("users.id", name="fk_files_uploaded_by_users"), nullable=False),
        sa.Column("storage_key", sa.String(length=500), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("storage_key", name="uq_files_storage_key"),
        sa.CheckConstraint(
            "submission_id IS NOT NULL OR student_profile_id IS NOT NULL",
            name="ck_files_owner_present",
        ),
        sa.CheckConstraint("version >= 1", name="ck_files_version_positive"),
        sa.CheckConstraint("size >= 1", name="ck_files_size_positive"),
    )
    op.create_index("ix_files_id", "files", ["id"])
    op.create_index("ix_files_submission_id", "files", ["submission_id"])
    op.create_index("ix_files_student_profile_id", "files", ["student_profile_id"])
    op.create_index("ix_files_type", "files", ["type"])
    op.create_index("ix_files_submission_type_version", "files", ["submission_id", "type", "version"])
    op.create_index("ix_files_student_profile_type", "files", ["student_profile_id", "type"])
    op.create_index(
        "uq_files_single_final",
        "files",
        ["submission_id"],
        unique=True,
        postgresql_where=sa.text("type = 'FINAL'"),
        sqlite_where=sa.text("type = 'FINAL'"),
    )

    op.create_table(
        "student_certificates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "profile_id",
            sa.Integer(),
            sa.ForeignKey(
                "student_profiles.id",
                name="fk_student_certificates_profile_id_student_profiles",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("type", certificate_type_enum, nullable=False),
        sa.Column("file_id", sa.Integer(), sa.ForeignKey("files.id", name="fk_student_certificates_file_id_files"), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_student_certificates_id", "student_certificates", ["id"])
    op.create_index("ix_student_certificates_profile_id", "student_certificates", ["profile_id"])


def downgrade() -> None:
    op.drop_table("student_certificates")
    op.drop_index("uq_files_single_final", table_name="files")
    op.drop_table("files")
    op.drop_table("submission_audit_entries")
    op.drop_index("uq_submissions_active_pair", table_name="submissions")
    op.drop_table("submissions")
    op.drop_table("student_target_universities")
    op.drop_table("faculty_profiles")
    op.drop_table("student_profiles")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in reversed(_ENUMS):
        enum.drop(bind, checkfirst=True)
