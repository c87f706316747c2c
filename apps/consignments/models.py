"""
Consignment models — two booking record families sharing one consignment-number namespace.

AgencyBooking  : bookings entered through the agency / customer booking flow.
DirectBooking  : bookings keyed in directly by staff or customers (manual entry).

A consignment number identifies the same logical consignment in either family; when both
hold it, the agency record is primary and the direct record mirrors its status.
"""

from django.db import models
from django.utils import timezone


class ConsignmentStatus(models.TextChoices):
    PENDING    = "pending",    "Pending"
    IN_TRANSIT = "in-transit", "In Transit"
    DELIVERED  = "delivered",  "Delivered"
    RETURNED   = "returned",   "Returned"
    CANCELLED  = "cancelled",  "Cancelled"


class Source(models.TextChoices):
    AGENCY = "agency_booking", "Agency booking"
    DIRECT = "direct_booking", "Direct booking"


class BookingRecord(models.Model):
    """Fields common to both record families."""

    consignment_number = models.CharField(max_length=40, unique=True)
    consignee_name     = models.CharField(max_length=120, blank=True)
    consignee_address  = models.CharField(max_length=500, blank=True)
    consignee_mobile   = models.CharField(max_length=20, blank=True)
    pieces             = models.IntegerField(default=1)
    weight             = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    cod_amount         = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    destination_city   = models.CharField(max_length=80, blank=True)
    origin_city        = models.CharField(max_length=80, blank=True)
    service_type       = models.CharField(max_length=40, blank=True)
    status             = models.CharField(
        max_length=12, choices=ConsignmentStatus.choices, default=ConsignmentStatus.PENDING, db_index=True
    )
    remarks            = models.TextField(blank=True)
    delivery_date      = models.DateTimeField(null=True, blank=True)
    # {"critical_flags": [...], "moderate_flags": [...]}; null means not yet validated
    validation_flags   = models.JSONField(null=True, blank=True)
    created_at         = models.DateTimeField(auto_now_add=True)
    updated_at         = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.consignment_number} [{self.status}]"


class AgencyBooking(BookingRecord):
    account_no   = models.CharField(max_length=30, blank=True, db_index=True)
    agent_name   = models.CharField(max_length=120, blank=True)
    reference_no = models.CharField(max_length=60, blank=True)
    booking_date = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-booking_date"]


class DirectBooking(BookingRecord):

    class CreatedBy(models.TextChoices):
        ADMIN    = "admin",    "Admin"
        CUSTOMER = "customer", "Customer"

    customer_id           = models.CharField(max_length=64, db_index=True)
    created_by            = models.CharField(max_length=10, choices=CreatedBy.choices)
    consignee_email       = models.EmailField(blank=True)
    fragile               = models.BooleanField(default=False)
    delivery_charges      = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    product_detail        = models.CharField(max_length=255, blank=True)
    customer_reference_no = models.CharField(max_length=60, blank=True)
    booked_on             = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-booked_on"]


class StatusEntry(models.Model):
    """Append-only status history; insertion order is chronological order."""
    source             = models.CharField(max_length=16, choices=Source.choices)
    consignment_number = models.CharField(max_length=40)
    status             = models.CharField(max_length=12, choices=ConsignmentStatus.choices)
    reason             = models.CharField(max_length=255, blank=True)
    remarks            = models.TextField(blank=True)
    updated_by         = models.CharField(max_length=64, default="system")
    timestamp          = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["timestamp", "id"]
        indexes  = [
            models.Index(fields=["source", "consignment_number"], name="cons_history_number_idx"),
        ]

    def as_entry(self):
        return {
            "status":     self.status,
            "timestamp":  self.timestamp,
            "reason":     self.reason or None,
            "remarks":    self.remarks or None,
            "updated_by": self.updated_by,
        }


class PropagationFailure(models.Model):
    """A status change that could not be mirrored onto the secondary record family."""
    consignment_number = models.CharField(max_length=40, db_index=True)
    target             = models.CharField(max_length=16, choices=Source.choices)
    status             = models.CharField(max_length=12, choices=ConsignmentStatus.choices)
    entry              = models.JSONField(default=dict)
    attempts           = models.PositiveIntegerField(default=0)
    last_error         = models.TextField(blank=True)
    resolved           = models.BooleanField(default=False, db_index=True)
    created_at         = models.DateTimeField(auto_now_add=True)
    updated_at         = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.consignment_number} -> {self.target} ({self.status})"
