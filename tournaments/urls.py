from django.urls import path

from .views import (
    TournamentCancelView,
    TournamentDetailView,
    TournamentDistributePrizesView,
    TournamentListCreateView,
    TournamentParticipantsView,
    TournamentPayoutsView,
    TournamentRegisterView,
    TournamentRescheduleView,
    TournamentResultsView,
    TournamentStatusView,
)

urlpatterns = [
    path("", TournamentListCreateView.as_view(), name="tournament-list"),
    path("<int:pk>/", TournamentDetailView.as_view(), name="tournament-detail"),
    path("<int:pk>/register/", TournamentRegisterView.as_view(), name="tournament-register"),
    path("<int:pk>/status/", TournamentStatusView.as_view(), name="tournament-status"),
    path("<int:pk>/cancel/", TournamentCancelView.as_view(), name="tournament-cancel"),
    path("<int:pk>/reschedule/", TournamentRescheduleView.as_view(), name="tournament-reschedule"),
    path("<int:pk>/results/", TournamentResultsView.as_view(), name="tournament-results"),
    path("<int:pk>/distribute-prizes/", TournamentDistributePrizesView.as_view(), name="tournament-distribute"),
    path("<int:pk>/payouts/", TournamentPayoutsView.as_view(), name="tournament-payouts"),
    path("<int:pk>/participants/", TournamentParticipantsView.as_view(), name="tournament-participants"),
]
