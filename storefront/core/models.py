from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class User(AbstractUser):
    """Customer/admin account; the profile fields live on the user row"""
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]
    BODY_TYPE_CHOICES = [
        ('straight', 'Straight'),
        ('wave', 'Wave'),
        ('natural', 'Natural'),
    ]

    full_name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True, null=True)
    birth_date = models.DateField(blank=True, null=True)

    # Onboarding answers used by the wardrobe and styling features
    height_cm = models.PositiveIntegerField(blank=True, null=True, validators=[MaxValueValidator(300)])
    weight_kg = models.PositiveIntegerField(blank=True, null=True, validators=[MaxValueValidator(500)])
    age = models.PositiveIntegerField(blank=True, null=True, validators=[MinValueValidator(1), MaxValueValidator(150)])
    body_type = models.CharField(max_length=20, choices=BODY_TYPE_CHOICES, blank=True, null=True)
    body_features = models.JSONField(default=list, blank=True)
    body_features_note = models.TextField(blank=True, null=True)
    onboarding_completed = models.BooleanField(default=False)
    display_initial = models.CharField(max_length=10, blank=True, null=True)
    is_wardrobe_public = models.BooleanField(default=False)
    is_styling_public = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin(self):
        return self.is_staff

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']


class AuditLog(models.Model):
    """Audit log for back-office write operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('reorder', 'Reorder'),
        ('images_replace', 'Images Replaced'),
        ('variants_replace', 'Variants Replaced'),
        ('order_status', 'Order Status Changed'),
        ('admin_grant', 'Admin Granted'),
        ('admin_revoke', 'Admin Revoked'),
        ('upload_url', 'Upload URL Issued'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_7f3c1a_idx'),
            models.Index(fields=['action'], name='audit_logs_action_4b2e9d_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_9a1c5e_idx'),
        ]
