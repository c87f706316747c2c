"""
Delivery (assignment) sheets.

A sheet links one rider to the consignment(s) in their custody. The current assignment
flow always creates one sheet per consignment; ActiveAssignment holds a unique claim on a
consignment number for as long as it sits on an active sheet.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class DeliverySheet(models.Model):

    class Status(models.TextChoices):
        ACTIVE     = "active",     "Active"
        PENDING    = "pending",    "Pending"
        IN_TRANSIT = "in-transit", "In Transit"
        DELIVERED  = "delivered",  "Delivered"
        CANCELLED  = "cancelled",  "Cancelled"
        COMPLETED  = "completed",  "Completed"

    rider               = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="delivery_sheets"
    )
    rider_name          = models.CharField(max_length=120)
    rider_code          = models.CharField(max_length=20)
    consignment_numbers = models.JSONField(default=list)
    count               = models.PositiveIntegerField(default=0)
    status              = models.CharField(max_length=12, choices=Status.choices, default=Status.ACTIVE, db_index=True)
    remarks             = models.TextField(blank=True)
    completed_at        = models.DateTimeField(null=True, blank=True)
    created_at          = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at          = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes  = [models.Index(fields=["rider", "status"], name="sheet_rider_status_idx")]

    def __str__(self):
        return f"Sheet {self.pk} – {self.rider_code} [{self.status}] ({self.count})"

    def save(self, *args, **kwargs):
        # ordered set of uppercase numbers; count always mirrors it
        numbers = [str(cn).strip().upper() for cn in (self.consignment_numbers or [])]
        self.consignment_numbers = list(dict.fromkeys(numbers))
        self.count = len(self.consignment_numbers)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "consignment_numbers" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"count"}
        super().save(*args, **kwargs)


class ActiveAssignment(models.Model):
    """Exclusive claim on a consignment number while it is on an active sheet."""
    consignment_number = models.CharField(max_length=40, unique=True)
    sheet              = models.ForeignKey(DeliverySheet, on_delete=models.CASCADE, related_name="claims")
    claimed_at         = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.consignment_number} → sheet {self.sheet_id}"
