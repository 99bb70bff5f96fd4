from django.urls import path

from .views import TransactionListView, WalletBalanceView

urlpatterns = [
    path("transactions/", TransactionListView.as_view(), name="wallet-transactions"),
    path("balance/", WalletBalanceView.as_view(), name="wallet-balance"),
]
