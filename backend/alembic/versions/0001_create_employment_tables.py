"""create employee, reference and employment tables"""
from alembic import op
import sqlalchemy as sa

revision = "0001_create_employment_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cnic", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("father_or_husband_name", sa.String(), nullable=False, server_default=""),
        sa.Column("mobile_number", sa.String(), nullable=False, server_default=""),
        sa.Column("email", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_employees_cnic", "employees", ["cnic"], unique=True)
    op.create_index("ix_employees_full_name", "employees", ["full_name"])

    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("code", sa.String(), nullable=False, unique=True),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
    )

    op.create_table(
        "designations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id"), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_designations_title", "designations", ["title"])
    op.create_index("ix_designations_department_id", "designations", ["department_id"])

    op.create_table(
        "employments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("organization", sa.String(), nullable=False),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id"), nullable=True),
        sa.Column("designation_id", sa.Integer(), sa.ForeignKey("designations.id"), nullable=True),
        sa.Column("employment_type", sa.String(), nullable=False, server_default="Regular"),
        sa.Column("effective_from", sa.Date(), nullable=True),
        sa.Column("effective_till", sa.Date(), nullable=True),
        sa.Column("role_tag", sa.String(), nullable=True),
        sa.Column("reporting_officer_id", sa.String(), nullable=True),
        sa.Column("office_location", sa.String(), nullable=True),
        sa.Column("scale_grade", sa.String(), nullable=True),
        sa.Column("medical_fitness_report_pdf", sa.String(), nullable=True),
        sa.Column("filer_status", sa.String(), nullable=False, server_default="non_filer"),
        sa.Column("filer_active_status", sa.String(), nullable=True),
        sa.Column("employment_status", sa.String(), nullable=False, server_default="active"),
        sa.Column("is_on_probation", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("probation_end_date", sa.Date(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column(
            "supersedes_id",
            sa.Integer(),
            sa.ForeignKey("employments.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "effective_till IS NULL OR effective_from IS NULL OR effective_till >= effective_from",
            name="ck_employments_effective_range",
        ),
    )
    op.create_index("ix_employments_employee_id", "employments", ["employee_id"])
    op.create_index("ix_employments_organization", "employments", ["organization"])

    op.create_table(
        "employment_salaries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employment_id",
            sa.Integer(),
            sa.ForeignKey("employments.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("basic_salary", sa.Float(), nullable=False, server_default="0"),
        sa.Column("medical_allowance", sa.Float(), nullable=False, server_default="0"),
        sa.Column("house_rent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("conveyance_allowance", sa.Float(), nullable=False, server_default="0"),
        sa.Column("other_allowances", sa.Float(), nullable=False, server_default="0"),
        sa.Column("daily_wage_rate", sa.Float(), nullable=True),
        sa.Column("bank_name_primary", sa.String(), nullable=True),
        sa.Column("bank_account_primary", sa.String(), nullable=True),
        sa.Column("bank_branch_code", sa.String(), nullable=True),
        sa.Column("bank_name_secondary", sa.String(), nullable=True),
        sa.Column("bank_account_secondary", sa.String(), nullable=True),
        sa.Column("payment_mode", sa.String(), nullable=False, server_default="Bank Transfer"),
        sa.Column("salary_effective_from", sa.Date(), nullable=True),
        sa.Column("salary_effective_till", sa.Date(), nullable=True),
        sa.Column("bonus_eligible", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payroll_status", sa.String(), nullable=False, server_default="Active"),
        sa.CheckConstraint(
            "basic_salary >= 0", name="ck_employment_salaries_basic_salary_non_negative"
        ),
    )

    op.create_table(
        "employment_locations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employment_id",
            sa.Integer(),
            sa.ForeignKey("employments.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("district", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("bazaar_name", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False, server_default="HEAD_OFFICE"),
        sa.Column("full_address", sa.Text(), nullable=True),
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employment_id",
            sa.Integer(),
            sa.ForeignKey("employments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("contract_type", sa.String(), nullable=False),
        sa.Column("contract_number", sa.String(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("probation_start", sa.Date(), nullable=True),
        sa.Column("probation_end", sa.Date(), nullable=True),
        sa.Column("probation_extended", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("probation_extension_reason", sa.String(), nullable=True),
        sa.Column("confirmation_status", sa.String(), nullable=False, server_default="In Progress"),
        sa.Column("confirmation_date", sa.Date(), nullable=True),
        sa.Column("is_renewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "renewal_from_contract_id",
            sa.Integer(),
            sa.ForeignKey("contracts.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        sa.Column("renewal_reason", sa.String(), nullable=True),
        sa.Column("renewal_notes", sa.Text(), nullable=True),
        sa.Column("renewal_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("termination_date", sa.Date(), nullable=True),
        sa.Column("termination_reason", sa.String(), nullable=True),
        sa.Column("performance_rating", sa.String(), nullable=True),
        sa.Column("contract_status", sa.String(), nullable=False, server_default="Active"),
        *_timestamps(),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date", name="ck_contracts_contract_range"
        ),
    )
    op.create_index("ix_contracts_employment_id", "contracts", ["employment_id"])


def downgrade() -> None:
    op.drop_index("ix_contracts_employment_id", table_name="contracts")
    op.drop_table("contracts")
    op.drop_table("employment_locations")
    op.drop_table("employment_salaries")
    op.drop_index("ix_employments_organization", table_name="employments")
    op.drop_index("ix_employments_employee_id", table_name="employments")
    op.drop_table("employments")
    op.drop_index("ix_designations_department_id", table_name="designations")
    op.drop_index("ix_designations_title", table_name="designations")
    op.drop_table("designations")
    op.drop_table("departments")
    op.drop_index("ix_employees_full_name", table_name="employees")
    op.drop_index("ix_employees_cnic", table_name="employees")
    op.drop_table("employees")
