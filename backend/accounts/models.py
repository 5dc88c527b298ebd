from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model with role selection"""
    ROLE_CHOICES = [
        ('client', 'Client'),
        ('mover', 'Mover'),
    ]

    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)
    phone_number = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'users'

    @property
    def is_client(self):
        return self.role == 'client'

    @property
    def is_mover(self):
        return self.role == 'mover'

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
