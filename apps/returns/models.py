"""Return sheets — a rider's daily batch of consignments handed back undelivered."""

from django.conf import settings
from django.db import models
from django.utils import timezone


class ReturnSheet(models.Model):

    class Outcome(models.TextChoices):
        TO_BE_SENT_BACK    = "to_be_sent_back",    "To be sent back"
        RECEIVED_AT_OFFICE = "received_at_office", "Received at office"
        OTHER              = "other",              "Other"

    rider               = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="return_sheets"
    )
    rider_name          = models.CharField(max_length=120)
    rider_code          = models.CharField(max_length=20)
    consignment_numbers = models.JSONField(default=list)
    # status snapshot at registration, same index as consignment_numbers
    order_statuses      = models.JSONField(default=list)
    count               = models.PositiveIntegerField(default=0)
    outcome             = models.CharField(
        max_length=20, choices=Outcome.choices, default=Outcome.RECEIVED_AT_OFFICE, db_index=True
    )
    remarks             = models.TextField(blank=True)
    created_at          = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at          = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes  = [models.Index(fields=["rider", "outcome", "created_at"], name="return_rider_day_idx")]

    def __str__(self):
        return f"Returns {self.pk} – {self.rider_code} [{self.outcome}] ({self.count})"

    def save(self, *args, **kwargs):
        if len(self.consignment_numbers) != len(self.order_statuses):
            raise ValueError("consignment_numbers and order_statuses must stay the same length")
        self.count = len(self.consignment_numbers)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "consignment_numbers" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"count", "order_statuses"}
        super().save(*args, **kwargs)
