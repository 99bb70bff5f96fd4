from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "username", "full_name", "wallet_balance", "is_active", "is_staff")
    list_filter = ("is_active", "is_staff")
    ordering = ("-date_joined",)
    search_fields = ("email", "username", "full_name")
    exclude = ("password",)
    # balances move only through the wallet ledger
    readonly_fields = ("wallet_balance", "last_login", "date_joined")
    filter_horizontal = ("groups", "user_permissions")
