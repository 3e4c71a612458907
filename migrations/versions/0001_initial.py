from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'activity_types',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )

    op.create_table(
        'activities',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('activity_type_id', sa.String(length=36), sa.ForeignKey('activity_types.id'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('adult_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('child_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('senior_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('party_size > 0', name='ck_activities_party_size'),
        sa.CheckConstraint(
            'adult_price >= 0 AND child_price >= 0 AND senior_price >= 0',
            name='ck_activities_prices',
        ),
    )
    op.create_index('ix_activities_activity_type_id', 'activities', ['activity_type_id'])

    op.create_table(
        'activity_schedules',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('activity_id', sa.String(length=36), sa.ForeignKey('activities.id'), nullable=False),
        sa.Column('scheduled_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scheduled_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('booked_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('walk_in_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.Boolean(), nullable=False),
        sa.Column('adult_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('child_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('senior_price', sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('scheduled_end > scheduled_start', name='ck_schedules_time_range'),
        sa.CheckConstraint('capacity >= 0', name='ck_schedules_capacity'),
        sa.CheckConstraint(
            'booked_count >= 0 AND booked_count <= capacity',
            name='ck_schedules_booked_count',
        ),
        sa.CheckConstraint('walk_in_count >= 0', name='ck_schedules_walk_in_count'),
    )
    op.create_index(
        'ix_activity_schedules_activity_start', 'activity_schedules', ['activity_id', 'scheduled_start']
    )

    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False, unique=True),
        sa.Column('commission_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('status', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            'commission_percentage >= 0 AND commission_percentage <= 100',
            name='ck_companies_commission',
        ),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('activity_schedule_id', sa.String(length=36), sa.ForeignKey('activity_schedules.id'), nullable=False),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=True),
        sa.Column('transport', sa.Boolean(), nullable=False),
        sa.Column('number_of_people', sa.Integer(), nullable=False),
        sa.Column('adult_count', sa.Integer(), nullable=False),
        sa.Column('child_count', sa.Integer(), nullable=False),
        sa.Column('senior_count', sa.Integer(), nullable=False),
        sa.Column('passenger_count', sa.Integer(), nullable=True),
        sa.Column('commission_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('customer_email', sa.String(length=254), nullable=True),
        sa.Column('customer_phone', sa.String(length=32), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False,
                  comment='Booking status: pending, confirmed, cancelled'),
        sa.Column('adult_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('child_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('senior_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'adult_count + child_count + senior_count = number_of_people',
            name='ck_bookings_count_sum',
        ),
        sa.CheckConstraint('number_of_people > 0', name='ck_bookings_people'),
        sa.CheckConstraint(
            'commission_percentage >= 0 AND commission_percentage <= 100',
            name='ck_bookings_commission',
        ),
    )
    op.create_index('ix_bookings_company_id', 'bookings', ['company_id'])
    op.create_index('ix_bookings_schedule_status', 'bookings', ['activity_schedule_id', 'status'])

    op.create_table(
        'languages',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('code', sa.String(length=8), nullable=False, unique=True),
        sa.Column('name', sa.String(length=64), nullable=False),
    )

    op.create_table(
        'guides',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('can_lead', sa.Boolean(), nullable=False),
        sa.Column('max_party_size', sa.Integer(), nullable=True),
        sa.Column('status', sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'guide_languages',
        sa.Column('guide_id', sa.String(length=36), sa.ForeignKey('guides.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('language_id', sa.String(length=36), sa.ForeignKey('languages.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'activity_assignments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('activity_schedule_id', sa.String(length=36),
                  sa.ForeignKey('activity_schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('guide_id', sa.String(length=36), sa.ForeignKey('guides.id'), nullable=False),
        sa.Column('is_leader', sa.Boolean(), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('activity_schedule_id', 'guide_id', name='uq_assignment_schedule_guide'),
    )
    op.create_index('ix_activity_assignments_activity_schedule_id', 'activity_assignments', ['activity_schedule_id'])
    op.create_index('ix_activity_assignments_guide_id', 'activity_assignments', ['guide_id'])

    op.create_table(
        'transports',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('model', sa.String(length=120), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('operational_status', sa.Boolean(), nullable=False),
        sa.Column('status', sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'settings',
        sa.Column('key', sa.String(length=64), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('settings')
    op.drop_table('transports')
    op.drop_index('ix_activity_assignments_guide_id', table_name='activity_assignments')
    op.drop_index('ix_activity_assignments_activity_schedule_id', table_name='activity_assignments')
    op.drop_table('activity_assignments')
    op.drop_table('guide_languages')
    op.drop_table('guides')
    op.drop_table('languages')
    op.drop_index('ix_bookings_schedule_status', table_name='bookings')
    op.drop_index('ix_bookings_company_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('companies')
    op.drop_index('ix_activity_schedules_activity_start', table_name='activity_schedules')
    op.drop_table('activity_schedules')
    op.drop_index('ix_activities_activity_type_id', table_name='activities')
    op.drop_table('activities')
    op.drop_table('activity_types')
