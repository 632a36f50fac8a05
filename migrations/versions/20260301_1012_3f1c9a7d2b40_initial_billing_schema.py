"""initial billing schema

Revision ID: 3f1c9a7d2b40
Revises:
Create Date: 2026-03-01 10:12:41.508213

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('parent_name', sa.String(length=128), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('address', sa.String(length=512), nullable=False, server_default=''),
        sa.Column('course', sa.String(length=64), nullable=False, server_default='Beginner'),
        sa.Column('photo', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_students_name', 'students', ['name'])

    # Attendance, invoices and schedules reference students without FKs
    op.create_table(
        'monthly_attendance',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('month', sa.String(length=2), nullable=False),
        sa.Column('year', sa.String(length=4), nullable=False),
        sa.Column('sessions', sa.JSON(), nullable=False),
        sa.Column('class_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('class_count >= 0', name='ck_attendance_class_count_positive')
    )
    op.create_index('ix_monthly_attendance_student_id', 'monthly_attendance', ['student_id'])
    op.create_index('ix_monthly_attendance_month_year', 'monthly_attendance', ['month', 'year'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='invoice'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Unpaid'),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('start_month', sa.String(length=2), nullable=False),
        sa.Column('start_year', sa.String(length=4), nullable=False),
        sa.Column('end_month', sa.String(length=2), nullable=False),
        sa.Column('end_year', sa.String(length=4), nullable=False),
        sa.Column('month_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('monthly_breakdown', sa.JSON(), nullable=False),
        sa.Column('class_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('actual_attendance_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sessions', sa.JSON(), nullable=False),
        sa.Column('rate_per_class', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('adjustment', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('adj_label', sa.String(length=128), nullable=False, server_default=''),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('is_manual_billing', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('student_snapshot', sa.JSON(), nullable=False),
        sa.Column('bank_snapshot', sa.JSON(), nullable=True),
        sa.Column('custom_invoice_no', sa.String(length=32), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("type IN ('invoice','quotation')", name='ck_invoice_type'),
        sa.CheckConstraint("status IN ('Unpaid','Paid','Quotation')", name='ck_invoice_status'),
        sa.CheckConstraint('month_count IN (1,2,3,4,6)', name='ck_invoice_month_count')
    )
    op.create_index('ix_invoices_student_id', 'invoices', ['student_id'])
    op.create_index('ix_invoices_end_period', 'invoices', ['end_year', 'end_month'])
    op.create_index('ix_invoices_created_at', 'invoices', ['created_at'])

    op.create_table(
        'settings',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key')
    )

    op.create_table(
        'schedules',
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('slots', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('student_id')
    )

    op.create_table(
        'expenses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_expenses_date', 'expenses', ['date'])


def downgrade():
    op.drop_index('ix_expenses_date', table_name='expenses')
    op.drop_table('expenses')
    op.drop_table('schedules')
    op.drop_table('settings')
    op.drop_index('ix_invoices_created_at', table_name='invoices')
    op.drop_index('ix_invoices_end_period', table_name='invoices')
    op.drop_index('ix_invoices_student_id', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_monthly_attendance_month_year', table_name='monthly_attendance')
    op.drop_index('ix_monthly_attendance_student_id', table_name='monthly_attendance')
    op.drop_table('monthly_attendance')
    op.drop_index('ix_students_name', table_name='students')
    op.drop_table('students')
