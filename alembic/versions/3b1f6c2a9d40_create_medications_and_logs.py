"""Create medications and medication logs

Revision ID: 3b1f6c2a9d40
Revises:
Create Date: 2025-03-26 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f6c2a9d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MEDICATION_TYPES = ('PRESCRIPTION', 'NON_PRESCRIPTION')
MEDICATION_FORMS = (
    'TABLET', 'CAPSULE', 'GUMMY', 'SOFTGEL', 'LIQUID', 'SYRUP', 'SUSPENSION',
    'CREAM', 'OINTMENT', 'GEL', 'LOTION', 'PATCH', 'INJECTION', 'INHALER',
    'NASAL_SPRAY', 'EYE_DROPS', 'EAR_DROPS', 'POWDER', 'OTHER'
)
DOSAGE_UNITS = ('MG', 'PILL', 'ML', 'SPRAY', 'DROP', 'PUFF', 'APPLICATION')


def upgrade() -> None:
    # Single table shared by prescription and non-prescription medications
    op.create_table(
        'medications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('medication_type', sa.Enum(*MEDICATION_TYPES, name='medicationtype'), nullable=False),
        sa.Column('form', sa.Enum(*MEDICATION_FORMS, name='medicationform'), nullable=False),
        sa.Column('total_mg_remaining', sa.Float(), nullable=False),
        sa.Column('mg_per_pill', sa.Float(), nullable=False),
        sa.Column('initial_pill_count', sa.Float(), nullable=False),
        sa.Column('next_dose_time', sa.DateTime(), nullable=True),
        sa.Column('daily_dosage', sa.Float(), nullable=True),
        sa.Column('daily_dosage_unit', sa.Enum(*DOSAGE_UNITS, name='dosageunit'), nullable=True),
        sa.Column('intake_goal', sa.JSON(), nullable=True),
        sa.Column('revision', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        # Prescription
        sa.Column('last_filled_on', sa.DateTime(), nullable=True),
        sa.Column('next_fill_date', sa.DateTime(), nullable=True),
        sa.Column('number_of_days_supply', sa.Float(), nullable=True),
        sa.Column('refills_remaining', sa.Integer(), nullable=True),
        sa.Column('prescriber_name', sa.String(), nullable=True),
        sa.Column('pharmacy_name', sa.String(), nullable=True),
        sa.Column('rx_number', sa.String(), nullable=True),
        # Non-prescription
        sa.Column('brand_name', sa.String(), nullable=True),
        sa.Column('supplement_type', sa.String(), nullable=True),
        sa.Column('serving_size', sa.Integer(), nullable=True),
        sa.Column('servings_per_container', sa.Integer(), nullable=True),
        sa.Column('purchase_location', sa.String(), nullable=True),
        sa.Column('expiration_date', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'medication_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('medication_id', sa.String(length=36), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('mg_intake', sa.Float(), nullable=False),
        sa.Column('total_mg_remaining', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['medication_id'], ['medications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_medication_logs_medication_id'), 'medication_logs', ['medication_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_medication_logs_medication_id'), table_name='medication_logs')
    op.drop_table('medication_logs')
    op.drop_table('medications')
