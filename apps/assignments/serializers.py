"""Delivery sheet serializers."""

from rest_framework import serializers
from apps.authentication.models import RiderProfile
from apps.consignments.serializers import ConsignmentSerializer
from .models import DeliverySheet


class DeliverySheetSerializer(serializers.ModelSerializer):
    class Meta:
        model  = DeliverySheet
        fields = [
            "id", "rider", "rider_name", "rider_code", "consignment_numbers",
            "count", "status", "remarks", "completed_at", "created_at",
        ]


class RiderSerializer(serializers.ModelSerializer):
    rider_id   = serializers.UUIDField(source="agent_id", read_only=True)
    rider_name = serializers.CharField(source="agent.full_name", read_only=True)

    class Meta:
        model  = RiderProfile
        fields = ["rider_id", "rider_name", "rider_code", "mobile_no"]


class AssignSerializer(serializers.Serializer):
    rider_id           = serializers.CharField()
    consignment_number = serializers.CharField(max_length=40)


class CompleteSheetSerializer(serializers.Serializer):
    remarks = serializers.CharField(required=False, allow_blank=True)


class DeclineSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RiderOverviewSerializer(serializers.Serializer):
    sheets      = DeliverySheetSerializer(many=True)
    parcels     = ConsignmentSerializer(many=True)
    total_count = serializers.IntegerField()


class StatusCountSerializer(serializers.Serializer):
    status    = serializers.CharField()
    count     = serializers.IntegerField()
    cod_total = serializers.DecimalField(max_digits=14, decimal_places=2)


class RiderStatisticsSerializer(serializers.Serializer):
    rider_id        = serializers.CharField()
    status_counts   = StatusCountSerializer(many=True)
    total_parcels   = serializers.IntegerField()
    grand_total_cod = serializers.DecimalField(max_digits=14, decimal_places=2)


class SheetDetailSerializer(serializers.Serializer):
    sheet   = DeliverySheetSerializer()
    parcels = ConsignmentSerializer(many=True)
