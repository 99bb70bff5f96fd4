from rest_framework import serializers

from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    tournament_title = serializers.CharField(source="tournament.title", default=None, read_only=True)

    class Meta:
        model = Transaction
        fields = (
            "id",
            "type",
            "amount",
            "reference",
            "status",
            "payment_method",
            "tournament",
            "tournament_title",
            "details",
            "created_at",
        )
        read_only_fields = fields
