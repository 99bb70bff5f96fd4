from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "username",
            "full_name",
            "wallet_balance",
            "date_joined",
        )
        read_only_fields = ("id", "email", "wallet_balance", "date_joined")

    def validate_username(self, value):
        username = value.strip()
        user = self.instance
        if user and user.username.lower() == username.lower():
            return username
        if User.objects.filter(username__iexact=username).exists():
            raise serializers.ValidationError("This username is already taken.")
        return username


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "username", "full_name")
