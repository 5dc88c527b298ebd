from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL


class VerificationStatus(models.TextChoices):
    PENDING_VERIFICATION = 'pending_verification', 'Pending Verification'
    VERIFIED = 'verified', 'Verified'
    SUSPENDED = 'suspended', 'Suspended'
    REJECTED = 'rejected', 'Rejected'


class MoverProfile(models.Model):
    """Mover's operational record: eligibility, availability and last known position"""
    VEHICLE_CHOICES = [
        ('small_van', 'Small Van'),
        ('medium_truck', 'Medium Truck'),
        ('large_truck', 'Large Truck'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='mover_profile')

    # Vehicle details
    vehicle_type = models.CharField(max_length=20, choices=VEHICLE_CHOICES, blank=True)
    vehicle_registration = models.CharField(max_length=20, blank=True)

    # Eligibility (set by admin verification)
    verification_status = models.CharField(
        max_length=25,
        choices=VerificationStatus.choices,
        default=VerificationStatus.PENDING_VERIFICATION,
    )

    # Availability & location (written by the geolocation feed)
    is_online = models.BooleanField(default=False)
    current_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    last_location_update = models.DateTimeField(default=timezone.now)

    # Aggregates
    rating = models.DecimalField(max_digits=3, decimal_places=2, null=True, blank=True)
    total_moves = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'mover_profiles'
        indexes = [
            models.Index(fields=['verification_status', 'is_online'], name='mover_eligibility_idx'),
        ]

    @property
    def has_position(self):
        return self.current_latitude is not None and self.current_longitude is not None

    def __str__(self):
        return f"{self.user.username} - {self.get_verification_status_display()}"
