"""Consignment serializers."""

from rest_framework import serializers
from .models import ConsignmentStatus


class BookingCreateSerializer(serializers.Serializer):
    """Agency booking payload. Business rules are left to the validation engine."""
    consignment_number = serializers.CharField(max_length=40, required=False, allow_blank=True)
    account_no         = serializers.CharField(max_length=30, required=False, allow_blank=True)
    agent_name         = serializers.CharField(max_length=120, required=False, allow_blank=True)
    reference_no       = serializers.CharField(max_length=60, required=False, allow_blank=True)
    consignee_name     = serializers.CharField(max_length=120, required=False, allow_blank=True)
    consignee_address  = serializers.CharField(max_length=500, required=False, allow_blank=True)
    consignee_mobile   = serializers.CharField(max_length=20, required=False, allow_blank=True)
    pieces             = serializers.IntegerField(required=False, allow_null=True)
    weight             = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    cod_amount         = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    destination_city   = serializers.CharField(max_length=80, required=False, allow_blank=True)
    origin_city        = serializers.CharField(max_length=80, required=False, allow_blank=True)
    service_type       = serializers.CharField(max_length=40, required=False, allow_blank=True, allow_null=True)
    remarks            = serializers.CharField(required=False, allow_blank=True)
    booking_date       = serializers.DateTimeField(required=False)


class DirectBookingCreateSerializer(serializers.Serializer):
    consignment_number    = serializers.CharField(max_length=40, required=False, allow_blank=True)
    customer_id           = serializers.CharField(max_length=64, required=False)
    service_type          = serializers.CharField(max_length=40)
    origin_city           = serializers.CharField(max_length=80)
    destination_city      = serializers.CharField(max_length=80)
    consignee_name        = serializers.CharField(max_length=120)
    consignee_mobile      = serializers.CharField(max_length=20)
    consignee_email       = serializers.EmailField(required=False, allow_blank=True)
    consignee_address     = serializers.CharField(max_length=500, required=False, allow_blank=True)
    weight                = serializers.DecimalField(max_digits=10, decimal_places=2)
    pieces                = serializers.IntegerField(required=False, default=1)
    cod_amount            = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    fragile               = serializers.BooleanField(required=False, default=False)
    delivery_charges      = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    product_detail        = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customer_reference_no = serializers.CharField(max_length=60, required=False, allow_blank=True)
    remarks               = serializers.CharField(required=False, allow_blank=True)
    booked_on             = serializers.DateTimeField(required=False)


class StatusEntrySerializer(serializers.Serializer):
    status     = serializers.CharField()
    timestamp  = serializers.DateTimeField()
    reason     = serializers.CharField(allow_null=True)
    remarks    = serializers.CharField(allow_null=True)
    updated_by = serializers.CharField()


class ConsignmentSerializer(serializers.Serializer):
    """
    Normalized consignment row, identical for either record family.
    Pass {"sheets": {cn: DeliverySheet}} in the context to include assignment info.
    """
    consignment_number = serializers.CharField()
    source             = serializers.CharField()
    status             = serializers.CharField()
    account_no         = serializers.CharField(allow_null=True)
    agent_name         = serializers.CharField(allow_null=True)
    consignee_name     = serializers.CharField(allow_null=True)
    consignee_address  = serializers.CharField(allow_null=True)
    consignee_mobile   = serializers.CharField(allow_null=True)
    pieces             = serializers.IntegerField(allow_null=True)
    weight             = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    cod_amount         = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    destination_city   = serializers.CharField(allow_null=True)
    origin_city        = serializers.CharField(allow_null=True)
    service_type       = serializers.CharField(allow_null=True)
    reference_no       = serializers.CharField(allow_null=True)
    remarks            = serializers.CharField()
    booking_date       = serializers.DateTimeField(allow_null=True)
    delivery_date      = serializers.DateTimeField(allow_null=True)
    validation_flags   = serializers.JSONField(allow_null=True)
    delivery_sheet     = serializers.SerializerMethodField()

    def get_delivery_sheet(self, obj):
        sheet = self.context.get("sheets", {}).get(obj.consignment_number)
        if sheet is None:
            return None
        return {
            "id":           sheet.pk,
            "rider_name":   sheet.rider_name,
            "rider_code":   sheet.rider_code,
            "status":       sheet.status,
            "created_at":   sheet.created_at,
            "completed_at": sheet.completed_at,
        }


class ConsignmentDetailSerializer(ConsignmentSerializer):
    status_history = serializers.SerializerMethodField()

    def get_status_history(self, obj):
        entries = self.context.get("history", [])
        return StatusEntrySerializer(entries, many=True).data


class StatusUpdateSerializer(serializers.Serializer):
    status  = serializers.ChoiceField(choices=ConsignmentStatus.choices)
    reason  = serializers.CharField(required=False, allow_blank=True)
    remarks = serializers.CharField(required=False, allow_blank=True)


class ConsignmentFilterSerializer(serializers.Serializer):
    status             = serializers.ChoiceField(choices=ConsignmentStatus.choices, required=False)
    destination_city   = serializers.CharField(required=False)
    account_no         = serializers.CharField(required=False)
    agent_name         = serializers.CharField(required=False)
    consignment_number = serializers.CharField(required=False)
    date_from          = serializers.DateField(required=False)
    date_to            = serializers.DateField(required=False)
    rider              = serializers.CharField(required=False, help_text="Rider code, name or id")


class VoidFilterSerializer(serializers.Serializer):
    destination_city = serializers.CharField(required=False)
    origin_city      = serializers.CharField(required=False)
    consignment_from = serializers.CharField(required=False)
    consignment_to   = serializers.CharField(required=False)
    date_from        = serializers.DateField(required=False)
    date_to          = serializers.DateField(required=False)


class VoidRequestSerializer(serializers.Serializer):
    consignment_number = serializers.CharField(max_length=40)
    reason             = serializers.CharField(required=False, allow_blank=True)
    remarks            = serializers.CharField(required=False, allow_blank=True)


class VoidedConsignmentSerializer(ConsignmentSerializer):
    flags = serializers.SerializerMethodField()

    def get_flags(self, obj):
        from .validation import classify
        flags = classify(obj)
        return {"critical": list(flags.critical), "moderate": list(flags.moderate)}
