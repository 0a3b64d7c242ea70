from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "college",
        sa.Column("college_id", sa.Integer(), primary_key=True),
        sa.Column("college_name", sa.String(150), nullable=False),
        sa.Column("college_code", sa.String(20), nullable=False, unique=True),
    )
    op.create_table(
        "program",
        sa.Column("program_id", sa.Integer(), primary_key=True),
        sa.Column(
            "college_id",
            sa.Integer(),
            sa.ForeignKey("college.college_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("program_name", sa.String(150), nullable=False),
        sa.Column("program_code", sa.String(20), nullable=False),
        sa.UniqueConstraint("college_id", "program_code"),
    )
    op.create_table(
        "curriculum_courses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "college_id",
            sa.Integer(),
            sa.ForeignKey("college.college_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "program_id",
            sa.Integer(),
            sa.ForeignKey("program.program_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("year", sa.String(30), nullable=False),
        sa.Column("semester", sa.String(30), nullable=False),
        sa.Column("course_code", sa.String(30), nullable=False),
        sa.Column("course_title", sa.String(255), nullable=False),
        sa.Column("lec", sa.Integer(), nullable=False),
        sa.Column("lab", sa.Integer(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("pre_co_requisite", sa.String(255)),
        sa.Column("is_gened", sa.Boolean(), nullable=False),
        sa.CheckConstraint("lec >= 0", name="ck_curriculum_lec_non_negative"),
        sa.CheckConstraint("lab >= 0", name="ck_curriculum_lab_non_negative"),
        sa.CheckConstraint("total = lec + lab", name="ck_curriculum_total"),
    )
    op.create_index("ix_curriculum_courses_id", "curriculum_courses", ["id"])
    op.create_index("ix_curriculum_courses_college_id", "curriculum_courses", ["college_id"])
    op.create_index("ix_curriculum_courses_program_id", "curriculum_courses", ["program_id"])
    op.create_table(
        "admin",
        sa.Column("admin_id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100)),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("extended_name", sa.String(20)),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
    )
    op.create_table(
        "professor",
        sa.Column("professor_id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100)),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("extended_name", sa.String(20)),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("college.college_id"), nullable=False),
        sa.Column("faculty_type", sa.String(50), nullable=False),
        sa.Column("position", sa.String(50), nullable=False),
        sa.Column("bachelors_degree", sa.String(255)),
        sa.Column("masters_degree", sa.String(255)),
        sa.Column("doctorate_degree", sa.String(255)),
        sa.Column("specialization", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
    )
    op.create_index("ix_professor_college_id", "professor", ["college_id"])
    op.create_table(
        "time_availability",
        sa.Column("availability_id", sa.Integer(), primary_key=True),
        sa.Column(
            "professor_id",
            sa.Integer(),
            sa.ForeignKey("professor.professor_id"),
            nullable=False,
            unique=True,
        ),
        *[
            sa.Column(day, sa.String(255), nullable=False, server_default="")
            for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
        ],
    )
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("ref_id", sa.Integer(), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_type", "ref_id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_table(
        "building",
        sa.Column("building_id", sa.Integer(), primary_key=True),
        sa.Column("building_name", sa.String(150), nullable=False, unique=True),
    )
    op.create_table(
        "room",
        sa.Column("room_id", sa.Integer(), primary_key=True),
        sa.Column("room_number", sa.Integer(), nullable=False),
        sa.Column("building_id", sa.Integer(), sa.ForeignKey("building.building_id"), nullable=False),
        sa.Column("room_type", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("college_code", sa.String(20)),
        sa.Column("floor_number", sa.Integer()),
        sa.UniqueConstraint("building_id", "room_type", "room_number"),
    )
    op.create_table(
        "section",
        sa.Column("section_id", sa.Integer(), primary_key=True),
        sa.Column("year_level", sa.String(30), nullable=False),
        sa.Column("section", sa.String(50), nullable=False),
        sa.Column("class_size", sa.Integer(), nullable=False),
        sa.Column(
            "program_id",
            sa.Integer(),
            sa.ForeignKey("program.program_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("college_id", sa.Integer(), sa.ForeignKey("college.college_id"), nullable=False),
        sa.Column("adviser", sa.String(150), nullable=False),
        sa.UniqueConstraint("section", "year_level", "program_id"),
    )


def downgrade() -> None:
    op.drop_table("section")
    op.drop_table("room")
    op.drop_table("building")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("time_availability")
    op.drop_index("ix_professor_college_id", table_name="professor")
    op.drop_table("professor")
    op.drop_table("admin")
    op.drop_index("ix_curriculum_courses_program_id", table_name="curriculum_courses")
    op.drop_index("ix_curriculum_courses_college_id", table_name="curriculum_courses")
    op.drop_index("ix_curriculum_courses_id", table_name="curriculum_courses")
    op.drop_table("curriculum_courses")
    op.drop_table("program")
    op.drop_table("college")
