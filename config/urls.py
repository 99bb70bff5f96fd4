from django.contrib import admin
from django.urls import include, path

from .views import healthz, readyz

urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz", healthz, name="healthz"),
    path("readyz", readyz, name="readyz"),
    path("api/accounts/", include("accounts.urls")),
    path("api/tournaments/", include("tournaments.urls")),
    path("api/wallet/", include("wallet.urls")),
    path("api/notifications/", include("notifications.urls")),
]
