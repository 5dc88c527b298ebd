import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.conf import settings
from django.utils import timezone


class MoveStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PENDING_PAYMENT = 'pending_payment', 'Pending Payment'
    PAID = 'paid', 'Paid'
    MOVER_ASSIGNED = 'mover_assigned', 'Mover Assigned'
    MOVER_ACCEPTED = 'mover_accepted', 'Mover Accepted'
    MOVER_EN_ROUTE = 'mover_en_route', 'Mover En Route'
    MOVER_ARRIVED = 'mover_arrived', 'Mover Arrived'
    LOADING = 'loading', 'Loading'
    IN_TRANSIT = 'in_transit', 'In Transit'
    ARRIVED_DESTINATION = 'arrived_destination', 'Arrived at Destination'
    UNLOADING = 'unloading', 'Unloading'
    COMPLETED = 'completed', 'Completed'
    DISPUTED = 'disputed', 'Disputed'
    CANCELLED_BY_CLIENT = 'cancelled_by_client', 'Cancelled by Client'
    CANCELLED_BY_MOVER = 'cancelled_by_mover', 'Cancelled by Mover'


class MoveCategory(models.TextChoices):
    SCHEDULED = 'scheduled', 'Scheduled'
    INSTANT = 'instant', 'Instant'


class MoveRequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACCEPTED = 'accepted', 'Accepted'
    DECLINED = 'declined', 'Declined'
    EXPIRED = 'expired', 'Expired'


class Move(models.Model):
    """One relocation job from pickup to dropoff"""

    MOVE_TYPE_CHOICES = [
        ('light', 'Light'),
        ('regular', 'Regular'),
        ('premium', 'Premium'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    handle = models.CharField(max_length=20, unique=True)

    # Parties
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='moves'
    )
    mover_profile = models.ForeignKey(
        'movers.MoverProfile',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='moves'
    )

    # Status & classification
    status = models.CharField(max_length=25, choices=MoveStatus.choices, default=MoveStatus.DRAFT)
    category = models.CharField(max_length=10, choices=MoveCategory.choices, default=MoveCategory.SCHEDULED)
    move_type = models.CharField(max_length=10, choices=MOVE_TYPE_CHOICES, default='light')

    # Pickup location
    pickup_address = models.TextField(blank=True)
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    # Dropoff location
    dropoff_address = models.TextField(blank=True)
    dropoff_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    # Scheduling
    move_date = models.DateField(null=True, blank=True)
    arrival_window = models.CharField(max_length=50, blank=True)

    # Pricing (calculated elsewhere)
    estimated_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    final_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    contact_notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(default=timezone.now)
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'moves'
        ordering = ['-created_at']

    @property
    def has_pickup(self):
        return self.pickup_latitude is not None and self.pickup_longitude is not None

    def __str__(self):
        return f"Move {self.handle} - {self.client} - {self.status}"


class MoveRequest(models.Model):
    """One time-boxed invitation sent to a specific mover for a specific move."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    move = models.ForeignKey(
        Move,
        on_delete=models.PROTECT,
        related_name='requests'
    )
    mover_profile = models.ForeignKey(
        'movers.MoverProfile',
        on_delete=models.PROTECT,
        related_name='move_requests'
    )

    # All offers created by one broadcast share a round id
    dispatch_round = models.UUIDField(db_index=True)

    status = models.CharField(
        max_length=10,
        choices=MoveRequestStatus.choices,
        default=MoveRequestStatus.PENDING,
    )
    distance_km = models.FloatField(null=True, blank=True)

    sent_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'move_requests'
        ordering = ['sent_at', 'distance_km']
        indexes = [
            models.Index(fields=['move', 'status'], name='move_request_status_idx'),
            models.Index(fields=['mover_profile', 'status'], name='mover_request_status_idx'),
        ]

    def is_expired(self, now=None):
        """True once the deadline has passed, whatever the stored status says."""
        now = now or timezone.now()
        return now > self.expires_at

    def is_live(self, now=None):
        return self.status == MoveRequestStatus.PENDING and not self.is_expired(now)

    def __str__(self):
        return f"Request {self.id} - Move {self.move_id} -> Mover {self.mover_profile_id} ({self.status})"


class MoveStatusHistory(models.Model):
    """Append-only audit record of one accepted status transition."""

    move = models.ForeignKey(
        Move,
        on_delete=models.PROTECT,
        related_name='status_history'
    )
    from_status = models.CharField(max_length=25, blank=True)
    to_status = models.CharField(max_length=25, choices=MoveStatus.choices)
    changed_by = models.CharField(max_length=64)
    changed_at = models.DateTimeField(default=timezone.now)
    note = models.TextField(null=True, blank=True)

    class Meta:
        db_table = 'move_status_history'
        ordering = ['id']
        verbose_name_plural = 'move status history'

    def __str__(self):
        return f"{self.move_id}: {self.from_status or '-'} -> {self.to_status}"


class Review(models.Model):
    """Client's rating of the mover after a completed move."""

    move = models.ForeignKey(
        Move,
        on_delete=models.PROTECT,
        related_name='reviews'
    )
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='reviews_given'
    )
    mover_profile = models.ForeignKey(
        'movers.MoverProfile',
        on_delete=models.PROTECT,
        related_name='reviews'
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['move', 'reviewer'], name='one_review_per_move_reviewer'),
        ]

    def __str__(self):
        return f"Review {self.rating}/5 for {self.mover_profile_id} on {self.move_id}"
