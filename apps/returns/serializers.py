"""Return sheet serializers."""

from rest_framework import serializers
from apps.consignments.serializers import ConsignmentSerializer
from .models import ReturnSheet


class ReturnSheetSerializer(serializers.ModelSerializer):
    class Meta:
        model  = ReturnSheet
        fields = [
            "id", "rider", "rider_name", "rider_code", "consignment_numbers",
            "order_statuses", "count", "outcome", "remarks", "created_at",
        ]


class RegisterReturnSerializer(serializers.Serializer):
    consignment_number = serializers.CharField(max_length=40)
    rider_id           = serializers.CharField(required=False, allow_blank=True)


class CompleteReturnSerializer(serializers.Serializer):
    outcome = serializers.CharField(required=False, allow_blank=True)
    remarks = serializers.CharField(required=False, allow_blank=True)


class TodaysBatchSerializer(serializers.Serializer):
    sheet   = ReturnSheetSerializer()
    parcels = ConsignmentSerializer(many=True)
