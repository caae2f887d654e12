from django.contrib import admin

from .models import Conversion


@admin.register(Conversion)
class ConversionAdmin(admin.ModelAdmin):
    list_display = ("id", "offer", "publisher", "click", "amount", "commission_amount", "status", "created_at")
    search_fields = ("id", "click__click_id", "publisher__email", "offer__name")
    list_filter = ("status", "currency")
    readonly_fields = (
        "click",
        "offer",
        "publisher",
        "link",
        "amount",
        "commission_amount",
        "currency",
        "idempotency_key",
        "created_at",
    )
