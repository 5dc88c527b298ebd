import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MoverProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vehicle_type', models.CharField(blank=True, choices=[('small_van', 'Small Van'), ('medium_truck', 'Medium Truck'), ('large_truck', 'Large Truck')], max_length=20)),
                ('vehicle_registration', models.CharField(blank=True, max_length=20)),
                ('verification_status', models.CharField(choices=[('pending_verification', 'Pending Verification'), ('verified', 'Verified'), ('suspended', 'Suspended'), ('rejected', 'Rejected')], default='pending_verification', max_length=25)),
                ('is_online', models.BooleanField(default=False)),
                ('current_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('current_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=10, null=True)),
                ('last_location_update', models.DateTimeField(default=django.utils.timezone.now)),
                ('rating', models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True)),
                ('total_moves', models.PositiveIntegerField(default=0)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='mover_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'mover_profiles',
                'indexes': [models.Index(fields=['verification_status', 'is_online'], name='mover_eligibility_idx')],
            },
        ),
    ]
