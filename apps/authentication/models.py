"""
Authentication models.
Agent is the custom User — covers Admin, Staff, Customer and Rider roles.
"""

import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager


class AgentManager(BaseUserManager):
    def create_user(self, phone, password=None, **extra):
        if not phone:
            raise ValueError("Phone number is required.")
        user = self.model(phone=phone, **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, phone, password, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        extra.setdefault("role", Agent.Role.ADMIN)
        return self.create_user(phone, password, **extra)


class Agent(AbstractBaseUser, PermissionsMixin):
    """Every human actor in CourierHub — identified by phone."""

    class Role(models.TextChoices):
        ADMIN    = "ADMIN",    "Administrator"
        STAFF    = "STAFF",    "Back-office Staff"
        CUSTOMER = "CUSTOMER", "Business Customer"
        RIDER    = "RIDER",    "Delivery Rider"

    BACK_OFFICE = (Role.ADMIN, Role.STAFF)

    id            = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone         = models.CharField(max_length=15, unique=True)
    full_name     = models.CharField(max_length=120)
    role          = models.CharField(max_length=12, choices=Role.choices, default=Role.CUSTOMER)
    # Business customers book under an account number
    account_no    = models.CharField(max_length=30, blank=True, null=True, unique=True)
    is_active     = models.BooleanField(default=True)
    is_staff      = models.BooleanField(default=False)
    created_at    = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD  = "phone"
    REQUIRED_FIELDS = ["full_name"]

    objects = AgentManager()

    class Meta:
        verbose_name = "Agent"
        indexes = [models.Index(fields=["role"], name="auth_agent_role_idx")]

    def __str__(self):
        return f"{self.full_name} ({self.role})"

    @property
    def is_back_office(self):
        return self.role in self.BACK_OFFICE


class RiderProfile(models.Model):
    """Extended info for agents with role=RIDER."""
    agent       = models.OneToOneField(Agent, on_delete=models.CASCADE, related_name="rider_profile")
    rider_code  = models.CharField(max_length=20, unique=True)
    mobile_no   = models.CharField(max_length=15, unique=True)
    cnic_no     = models.CharField(max_length=13, blank=True)
    address     = models.CharField(max_length=500, blank=True)
    active      = models.BooleanField(default=True)
    created_at  = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.agent.full_name} – {self.rider_code}"
