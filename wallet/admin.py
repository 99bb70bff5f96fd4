from django.contrib import admin

from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("reference", "user", "tournament", "type", "amount", "status", "created_at")
    list_filter = ("type", "status")
    search_fields = ("reference", "user__email", "user__username")
    readonly_fields = [f.name for f in Transaction._meta.fields]
    ordering = ("-created_at",)
