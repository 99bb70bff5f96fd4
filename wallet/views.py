from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Transaction
from .serializers import TransactionSerializer
from .services import balance_of


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
    data = serializer_class(queryset[start:end], many=True).data
    return {
        "results": data,
        "page": page,
        "page_size": page_size,
        "total": total,
    }


class TransactionListView(APIView):
    """The caller's own ledger, newest first."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        qs = Transaction.objects.filter(user=request.user).select_related("tournament")
        tx_type = request.query_params.get("type")
        if tx_type:
            qs = qs.filter(type=tx_type)
        tournament = request.query_params.get("tournament")
        if tournament and tournament.isdigit():
            qs = qs.filter(tournament_id=int(tournament))
        return Response(paginate_queryset(qs.order_by("-created_at", "-id"), request, TransactionSerializer))


class WalletBalanceView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response({"wallet_balance": str(balance_of(request.user.pk))})
