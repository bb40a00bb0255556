"""initial schema: facilities, blood stock, blood requests, stock log

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'facility',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    with op.batch_alter_table('facility', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_facility_role'), ['role'], unique=False)

    op.create_table(
        'blood_stock',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.Integer(), nullable=False),
        sa.Column('blood_group', sa.String(length=3), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity >= 0', name='ck_blood_stock_quantity_non_negative'),
        sa.ForeignKeyConstraint(['facility_id'], ['facility.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('facility_id', 'blood_group', name='unique_group_per_facility')
    )
    with op.batch_alter_table('blood_stock', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_blood_stock_facility_id'), ['facility_id'], unique=False)

    op.create_table(
        'blood_request',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('hospital_id', sa.Integer(), nullable=False),
        sa.Column('lab_id', sa.Integer(), nullable=False),
        sa.Column('blood_group', sa.String(length=3), nullable=False),
        sa.Column('units', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.CheckConstraint('units >= 1', name='ck_blood_request_units_positive'),
        sa.ForeignKeyConstraint(['hospital_id'], ['facility.id']),
        sa.ForeignKeyConstraint(['lab_id'], ['facility.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('blood_request', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_blood_request_created_at'), ['created_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_blood_request_hospital_id'), ['hospital_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_blood_request_lab_id'), ['lab_id'], unique=False)

    op.create_table(
        'stock_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('facility_id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('action_type', sa.String(length=20), nullable=False),
        sa.Column('blood_group', sa.String(length=3), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['facility.id']),
        sa.ForeignKeyConstraint(['facility_id'], ['facility.id']),
        sa.ForeignKeyConstraint(['request_id'], ['blood_request.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('stock_log', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_stock_log_facility_id'), ['facility_id'], unique=False)


def downgrade():
    with op.batch_alter_table('stock_log', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_stock_log_facility_id'))
    op.drop_table('stock_log')

    with op.batch_alter_table('blood_request', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_blood_request_lab_id'))
        batch_op.drop_index(batch_op.f('ix_blood_request_hospital_id'))
        batch_op.drop_index(batch_op.f('ix_blood_request_created_at'))
    op.drop_table('blood_request')

    with op.batch_alter_table('blood_stock', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_blood_stock_facility_id'))
    op.drop_table('blood_stock')

    with op.batch_alter_table('facility', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_facility_role'))
    op.drop_table('facility')
