"""Teacher accounts (Google sign-in only) and mobile sign-in handoff tickets."""
import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager
from django.db import models
from django.utils import timezone


class TeacherManager(BaseUserManager):
    """Accounts are keyed by lower-cased e-mail and never hold a password."""

    def create_user(self, email, **extra_fields):
        if not email:
            raise ValueError("Email is required")
        extra_fields.pop("password", None)
        user = self.model(email=email.strip().lower(), **extra_fields)
        user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", Teacher.Role.SUPERADMIN)
        return self.create_user(email, **extra_fields)


class Teacher(AbstractBaseUser):
    """A human identity bound to at most one organization."""

    class Role(models.TextChoices):
        TEACHER = "teacher", "Teacher"
        ADMIN = "admin", "Admin"
        SUPERADMIN = "superadmin", "Super admin"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    display_name = models.CharField(max_length=150, blank=True, default="")
    role = models.CharField(max_length=12, choices=Role.choices, default=Role.TEACHER)
    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="teachers",
    )
    is_active = models.BooleanField(default=True)
    is_specialist = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TeacherManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        app_label = "accounts"
        ordering = ["email"]
        indexes = [
            models.Index(fields=["organization", "role"], name="idx_teacher_org_role"),
        ]

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        self.email = (self.email or "").strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_superadmin(self):
        return self.role == self.Role.SUPERADMIN

    @property
    def is_admin(self):
        return self.role in (self.Role.ADMIN, self.Role.SUPERADMIN)

    # Django admin site is reserved for super-admins.
    @property
    def is_staff(self):
        return self.is_active and self.is_superadmin

    @property
    def is_superuser(self):
        return self.is_staff

    def has_perm(self, perm, obj=None):
        return self.is_staff

    def has_module_perms(self, app_label):
        return self.is_staff

    @property
    def name(self):
        return self.display_name or self.email


class MobileAuthTicket(models.Model):
    """
    Cross-device sign-in handoff.

    state issued -> session bound -> transfer issued -> consumed. A ticket
    past ``expires_at`` or with ``consumed_at`` set is dead.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    state = models.CharField(max_length=64, unique=True)
    session_key = models.CharField(max_length=64, null=True, blank=True)
    transfer_token = models.CharField(max_length=64, unique=True, null=True, blank=True)
    redirect_path = models.CharField(max_length=255, default="/teacher")
    expires_at = models.DateTimeField(db_index=True)
    consumed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "accounts"

    def __str__(self):
        return f"ticket {self.state[:8]}…"

    @property
    def is_usable(self):
        return self.consumed_at is None and self.expires_at > timezone.now()
