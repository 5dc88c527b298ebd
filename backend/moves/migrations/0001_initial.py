import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


MOVE_STATUS_CHOICES = [
    ('draft', 'Draft'),
    ('pending_payment', 'Pending Payment'),
    ('paid', 'Paid'),
    ('mover_assigned', 'Mover Assigned'),
    ('mover_accepted', 'Mover Accepted'),
    ('mover_en_route', 'Mover En Route'),
    ('mover_arrived', 'Mover Arrived'),
    ('loading', 'Loading'),
    ('in_transit', 'In Transit'),
    ('arrived_destination', 'Arrived at Destination'),
    ('unloading', 'Unloading'),
    ('completed', 'Completed'),
    ('disputed', 'Disputed'),
    ('cancelled_by_client', 'Cancelled by Client'),
    ('cancelled_by_mover', 'Cancelled by Mover'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('movers', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Move',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('handle', models.CharField(max_length=20, unique=True)),
                ('status', models.CharField(choices=MOVE_STATUS_CHOICES, default='draft', max_length=25)),
                ('category', models.CharField(choices=[('scheduled', 'Scheduled'), ('instant', 'Instant')], default='scheduled', max_length=10)),
                ('move_type', models.CharField(choices=[('light', 'Light'), ('regular', 'Regular'), ('premium', 'Premium')], default='light', max_length=10)),
                ('pickup_address', models.TextField(blank=True)),
                ('pickup_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('pickup_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('dropoff_address', models.TextField(blank=True)),
                ('dropoff_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('dropoff_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('move_date', models.DateField(blank=True, null=True)),
                ('arrival_window', models.CharField(blank=True, max_length=50)),
                ('estimated_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('final_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('contact_notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='moves', to=settings.AUTH_USER_MODEL)),
                ('mover_profile', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='moves', to='movers.moverprofile')),
            ],
            options={
                'db_table': 'moves',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='MoveRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('dispatch_round', models.UUIDField(db_index=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('declined', 'Declined'), ('expired', 'Expired')], default='pending', max_length=10)),
                ('distance_km', models.FloatField(blank=True, null=True)),
                ('sent_at', models.DateTimeField()),
                ('expires_at', models.DateTimeField()),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('move', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='requests', to='moves.move')),
                ('mover_profile', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='move_requests', to='movers.moverprofile')),
            ],
            options={
                'db_table': 'move_requests',
                'ordering': ['sent_at', 'distance_km'],
                'indexes': [
                    models.Index(fields=['move', 'status'], name='move_request_status_idx'),
                    models.Index(fields=['mover_profile', 'status'], name='mover_request_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MoveStatusHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_status', models.CharField(blank=True, max_length=25)),
                ('to_status', models.CharField(choices=MOVE_STATUS_CHOICES, max_length=25)),
                ('changed_by', models.CharField(max_length=64)),
                ('changed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('note', models.TextField(blank=True, null=True)),
                ('move', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='status_history', to='moves.move')),
            ],
            options={
                'db_table': 'move_status_history',
                'ordering': ['id'],
                'verbose_name_plural': 'move status history',
            },
        ),
    ]
