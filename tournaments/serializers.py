from decimal import Decimal

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import Tournament, TournamentParticipant, TournamentResult


class TournamentSerializer(serializers.ModelSerializer):
    organizer = UserSummarySerializer(read_only=True)
    participants_count = serializers.SerializerMethodField()
    duration_minutes = serializers.SerializerMethodField()
    is_private = serializers.SerializerMethodField()

    class Meta:
        model = Tournament
        fields = (
            "id",
            "title",
            "category",
            "rules",
            "tournament_link",
            "organizer",
            "start_date",
            "start_time",
            "timezone",
            "duration_ms",
            "duration_minutes",
            "start_at",
            "status",
            "manual_status_override",
            "prize_type",
            "prizes",
            "total_prize_pool",
            "entry_fee",
            "funding_method",
            "prizes_distributed",
            "prize_distribution_date",
            "participants_count",
            "is_private",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_participants_count(self, obj):
        count = getattr(obj, "participants_count", None)
        return count if count is not None else obj.participants.count()

    def get_duration_minutes(self, obj):
        return obj.duration_ms / (60 * 1000)

    def get_is_private(self, obj):
        return bool(obj.password)


class TournamentCreateSerializer(serializers.Serializer):
    """Request shape only; schedule and prize rules are checked by the services."""

    title = serializers.CharField(max_length=255)
    category = serializers.CharField(max_length=100)
    rules = serializers.CharField()
    tournament_link = serializers.URLField(max_length=500)
    password = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    start_date = serializers.CharField()
    start_time = serializers.CharField(max_length=16)
    timezone = serializers.CharField(max_length=64, required=False, allow_blank=True, default="UTC")
    duration = serializers.CharField(help_text="Duration in minutes")
    prize_type = serializers.ChoiceField(choices=Tournament.PRIZE_CHOICES)
    prizes = serializers.JSONField(required=False, default=dict)
    entry_fee = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, default=Decimal("0"), min_value=Decimal("0")
    )
    funding_method = serializers.ChoiceField(
        choices=Tournament.FUNDING_CHOICES, required=False, default=Tournament.FUNDING_WALLET
    )


class TournamentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Tournament.STATUS_CHOICES, required=False)
    override = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        if attrs.get("override", True) and not attrs.get("status"):
            raise serializers.ValidationError({"status": "This field is required."})
        return attrs


class TournamentRescheduleSerializer(serializers.Serializer):
    start_date = serializers.CharField(required=False)
    start_time = serializers.CharField(max_length=16, required=False)
    timezone = serializers.CharField(max_length=64, required=False, allow_blank=True)
    duration = serializers.CharField(required=False)


class TournamentParticipantSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = TournamentParticipant
        fields = ("id", "user", "joined_at")


class TournamentResultSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = TournamentResult
        fields = ("user", "position", "score", "category")
