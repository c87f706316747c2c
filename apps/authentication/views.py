"""Authentication: JWT login and own-profile lookup."""

from django.contrib.auth import get_user_model
from rest_framework import generics, serializers
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

Agent = get_user_model()


class AgentProfileSerializer(serializers.ModelSerializer):
    rider_code = serializers.CharField(source="rider_profile.rider_code", read_only=True, default=None)

    class Meta:
        model  = Agent
        fields = ["id", "phone", "full_name", "role", "account_no", "rider_code", "created_at"]
        read_only_fields = fields


@extend_schema(tags=["Auth"])
class ProfileView(generics.RetrieveAPIView):
    """GET /api/auth/me/ — Retrieve own identity."""
    serializer_class   = AgentProfileSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user
