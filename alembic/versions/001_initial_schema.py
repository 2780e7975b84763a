"""Initial schema: panels, availability, weekday rules and workflows

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'panel',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('members', sa.JSON(), nullable=False),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'panel_availability',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('panel_id', sa.Uuid(), sa.ForeignKey('panel.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('panel_id', 'date', name='uq_panel_availability_date'),
    )
    op.create_index('ix_panel_availability_panel_id', 'panel_availability', ['panel_id'])

    op.create_table(
        'panel_time_slot',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'availability_id',
            sa.Uuid(),
            sa.ForeignKey('panel_availability.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('is_booked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('booked_by_workflow_id', sa.Uuid(), nullable=True),
        sa.Column('booked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('start_time < end_time', name='ck_panel_time_slot_order'),
    )
    op.create_index('ix_panel_time_slot_availability_id', 'panel_time_slot', ['availability_id'])
    op.create_index('ix_panel_time_slot_booked_by_workflow_id', 'panel_time_slot', ['booked_by_workflow_id'])

    op.create_table(
        'panel_recurring_rule',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('panel_id', sa.Uuid(), sa.ForeignKey('panel.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('panel_id', 'day_of_week', name='uq_panel_recurring_rule_day'),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_panel_recurring_rule_day'),
    )
    op.create_index('ix_panel_recurring_rule_panel_id', 'panel_recurring_rule', ['panel_id'])

    op.create_table(
        'panel_recurring_slot',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'rule_id',
            sa.Uuid(),
            sa.ForeignKey('panel_recurring_rule.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('slot_duration', sa.Integer(), nullable=False, server_default='60'),
        *_timestamps(),
        sa.CheckConstraint('start_time < end_time', name='ck_panel_recurring_slot_order'),
    )
    op.create_index('ix_panel_recurring_slot_rule_id', 'panel_recurring_slot', ['rule_id'])

    op.create_table(
        'workflow',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('application_id', sa.Uuid(), nullable=False, unique=True),
        sa.Column('campaign_id', sa.Uuid(), nullable=False),
        sa.Column('candidate_name', sa.String(200), nullable=False),
        sa.Column('current_stage', sa.String(50), nullable=False),
        sa.Column('next_activity_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('stages', _json(), nullable=False),
        sa.Column('candidate_details', _json(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
    )
    op.create_index('ix_workflow_campaign_id', 'workflow', ['campaign_id'])
    op.create_index('ix_workflow_current_stage', 'workflow', ['current_stage'])
    op.create_index('ix_workflow_next_activity_date', 'workflow', ['next_activity_date'])


def downgrade() -> None:
    op.drop_index('ix_workflow_next_activity_date', table_name='workflow')
    op.drop_index('ix_workflow_current_stage', table_name='workflow')
    op.drop_index('ix_workflow_campaign_id', table_name='workflow')
    op.drop_table('workflow')
    op.drop_index('ix_panel_recurring_slot_rule_id', table_name='panel_recurring_slot')
    op.drop_table('panel_recurring_slot')
    op.drop_index('ix_panel_recurring_rule_panel_id', table_name='panel_recurring_rule')
    op.drop_table('panel_recurring_rule')
    op.drop_index('ix_panel_time_slot_booked_by_workflow_id', table_name='panel_time_slot')
    op.drop_index('ix_panel_time_slot_availability_id', table_name='panel_time_slot')
    op.drop_table('panel_time_slot')
    op.drop_index('ix_panel_availability_panel_id', table_name='panel_availability')
    op.drop_table('panel_availability')
    op.drop_table('panel')
