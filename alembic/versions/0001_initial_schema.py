"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-02-04 08:29:11

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

JOB_TYPES = ("extraction", "compliance", "deliverables")
JOB_STATUSES = ("pending", "processing", "completed", "failed")
DELIVERABLE_TYPES = (
    "ai_prompt_log",
    "design_review_report",
    "issue_register",
    "compliance_checklist",
    "recalculation_sheet",
    "redline_notes",
    "bom_boq",
    "risk_reflection",
)
DELIVERABLE_STATUSES = ("not_generated", "generated", "updated")


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False, index=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("system_type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_table(
        "project_files",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("file_type", sa.String(32), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("storage_path", sa.Text()),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("extracted_text", sa.Text()),
        _timestamp("uploaded_at"),
    )
    op.create_table(
        "standards_library",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("version", sa.Text()),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("storage_path", sa.Text()),
        sa.Column("is_global", sa.Boolean(), nullable=False),
        sa.Column("extracted_text", sa.Text()),
        _timestamp("uploaded_at"),
    )
    op.create_table(
        "submissions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("submitted_by", sa.Text(), nullable=False),
        _timestamp("submitted_at"),
        _timestamp("completed_at", nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("compliance_percentage", sa.Integer(), nullable=False),
    )
    op.create_table(
        "deliverables",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "submission_id",
            sa.String(64),
            sa.ForeignKey("submissions.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("type", sa.Enum(*DELIVERABLE_TYPES, name="deliverable_type"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "status", sa.Enum(*DELIVERABLE_STATUSES, name="deliverable_status"), nullable=False
        ),
        sa.Column("content", sa.Text()),
        _timestamp("generated_at", nullable=True),
        _timestamp("updated_at", nullable=True),
    )
    op.create_table(
        "processing_jobs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(64),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("user_id", sa.String(128), nullable=False, index=True),
        sa.Column("job_type", sa.Enum(*JOB_TYPES, name="job_type"), nullable=False),
        sa.Column("status", sa.Enum(*JOB_STATUSES, name="job_status"), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("result", sa.JSON()),
        sa.Column("error", sa.Text()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "progress >= 0 AND progress <= 100", name="processing_jobs_progress_range"
        ),
    )


def downgrade() -> None:
    op.drop_table("processing_jobs")
    op.drop_table("deliverables")
    op.drop_table("submissions")
    op.drop_table("standards_library")
    op.drop_table("project_files")
    op.drop_table("projects")
    for enum_name in ("job_status", "job_type", "deliverable_status", "deliverable_type"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
