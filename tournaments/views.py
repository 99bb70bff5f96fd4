from django.db import models
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .clock import time_info
from .distribution import distribute_prizes
from .exceptions import NotOrganizer, TournamentError
from .models import Tournament, TournamentParticipant
from .payouts import payout_total
from .serializers import (
    TournamentCreateSerializer,
    TournamentParticipantSerializer,
    TournamentRescheduleSerializer,
    TournamentResultSerializer,
    TournamentSerializer,
    TournamentStatusSerializer,
)
from .status import refresh_status


def paginate_queryset(queryset, request, serializer_class):
    try:
        page = int(request.query_params.get("page", 1))
        page_size = int(request.query_params.get("page_size", 20))
    except ValueError:
        page, page_size = 1, 20
    page = max(page, 1)
    page_size = max(min(page_size, 100), 1)
    start = (page - 1) * page_size
    end = start + page_size
    total = queryset.count()
    items = list(queryset[start:end])
    now = timezone.now()
    for tournament in items:
        refresh_status(tournament, now)
    data = serializer_class(items, many=True, context={"request": request}).data
    return {
        "results": data,
        "page": page,
        "page_size": page_size,
        "total": total,
    }


def error_response(exc: TournamentError) -> Response:
    return Response(exc.as_dict(), status=exc.status_code)


def payout_summary(lines) -> dict:
    return {"payouts": [line.as_dict() for line in lines], "total": str(payout_total(lines))}


class TournamentListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        qs = Tournament.objects.select_related("organizer").annotate(participants_count=models.Count("participants"))
        status_filter = request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        category = request.query_params.get("category")
        if category:
            qs = qs.filter(category__iexact=category)
        organizer = request.query_params.get("organizer")
        if organizer == "me":
            qs = qs.filter(organizer=request.user)
        elif organizer and organizer.isdigit():
            qs = qs.filter(organizer_id=int(organizer))
        return Response(paginate_queryset(qs.order_by("start_at", "id"), request, TournamentSerializer))

    def post(self, request):
        serializer = TournamentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            tournament = services.create_tournament(request.user, serializer.validated_data)
        except TournamentError as exc:
            return error_response(exc)
        return Response(TournamentSerializer(tournament).data, status=status.HTTP_201_CREATED)


class TournamentDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk: int):
        tournament = get_object_or_404(Tournament.objects.select_related("organizer"), id=pk)
        now = timezone.now()
        refresh_status(tournament, now)
        data = TournamentSerializer(tournament).data
        data["time_info"] = time_info(tournament.start_at, tournament.duration_ms, tournament.timezone, now)
        is_registered = TournamentParticipant.objects.filter(tournament=tournament, user=request.user).exists()
        data["is_registered"] = is_registered
        data["is_organizer"] = tournament.is_organizer(request.user.pk)
        data["can_register"] = tournament.status == Tournament.STATUS_UPCOMING and not is_registered
        return Response(data)


class TournamentRegisterView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        confirmed = request.data.get("confirmed") in (True, "true", "1", 1)
        try:
            services.register_participant(tournament, request.user, confirmed=confirmed)
        except TournamentError as exc:
            return error_response(exc)
        return Response(
            {
                "detail": "Successfully registered for tournament",
                "tournament_link": tournament.tournament_link,
                "password": tournament.password or "",
                "tournament": {
                    "id": tournament.pk,
                    "title": tournament.title,
                    "start_date": tournament.start_date,
                    "start_time": tournament.start_time,
                },
            }
        )


class TournamentStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        serializer = TournamentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            services.set_manual_status(
                tournament,
                request.user,
                serializer.validated_data.get("status"),
                override=serializer.validated_data["override"],
            )
        except TournamentError as exc:
            return error_response(exc)
        return Response(
            {"status": tournament.status, "manual_status_override": tournament.manual_status_override}
        )


class TournamentCancelView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        try:
            services.cancel_tournament(tournament, request.user, str(request.data.get("reason", "")))
        except TournamentError as exc:
            return error_response(exc)
        return Response({"status": tournament.status})


class TournamentRescheduleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        serializer = TournamentRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            services.reschedule_tournament(
                tournament,
                request.user,
                start_date=data.get("start_date"),
                start_time=data.get("start_time"),
                timezone_name=data.get("timezone"),
                duration=data.get("duration"),
            )
        except TournamentError as exc:
            return error_response(exc)
        return Response(TournamentSerializer(tournament).data)


class TournamentResultsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        distribute = request.data.get("distribute", True) not in (False, "false", "0", 0)
        try:
            lines = services.submit_results(tournament, request.user, request.data.get("results"))
            body = {"status": tournament.status, **payout_summary(lines)}
            if distribute and lines:
                receipt = distribute_prizes(tournament.pk, lines, request.user.pk)
                body["distribution"] = receipt.as_dict()
        except TournamentError as exc:
            return error_response(exc)
        return Response(body)


class TournamentDistributePrizesView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        lines = request.data.get("payouts", request.data.get("prizeDistribution"))
        try:
            if lines is None:
                lines = services.payouts_for(tournament)
            receipt = distribute_prizes(tournament.pk, lines, request.user.pk)
        except TournamentError as exc:
            return error_response(exc)
        return Response(receipt.as_dict())


class TournamentPayoutsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        try:
            lines = services.payouts_for(tournament)
        except TournamentError as exc:
            return error_response(exc)
        return Response(
            {
                "prize_type": tournament.prize_type,
                "prizes_distributed": tournament.prizes_distributed,
                **payout_summary(lines),
            }
        )


class TournamentParticipantsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk: int):
        tournament = get_object_or_404(Tournament, id=pk)
        if not tournament.is_organizer(request.user.pk):
            return error_response(NotOrganizer("Only the tournament organizer can view participants."))
        participants = tournament.participants.select_related("user")
        results = tournament.results.select_related("user")
        return Response(
            {
                "tournament": {
                    "id": tournament.pk,
                    "title": tournament.title,
                    "status": tournament.status,
                    "prize_type": tournament.prize_type,
                    "prize_structure": tournament.prizes,
                },
                "participants": TournamentParticipantSerializer(participants, many=True).data,
                "results": TournamentResultSerializer(results, many=True).data,
                "total_participants": participants.count(),
            }
        )
