from django.contrib import admin

from .models import Tournament, TournamentParticipant, TournamentResult


class TournamentParticipantInline(admin.TabularInline):
    model = TournamentParticipant
    extra = 0
    readonly_fields = ["joined_at"]


class TournamentResultInline(admin.TabularInline):
    model = TournamentResult
    extra = 0


@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "organizer", "status", "start_at", "prize_type", "total_prize_pool", "prizes_distributed"]
    list_filter = ["status", "prize_type", "prizes_distributed", "manual_status_override"]
    search_fields = ["title", "category", "organizer__username", "organizer__email"]
    readonly_fields = [
        "start_at",
        "total_prize_pool",
        "prizes_distributed",
        "prize_distribution_date",
        "distributed_by",
        "created_at",
        "updated_at",
    ]
    inlines = [TournamentParticipantInline, TournamentResultInline]
    ordering = ["-start_at"]
