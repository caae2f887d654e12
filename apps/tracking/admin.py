from django.contrib import admin

from .models import Click, Link


@admin.register(Link)
class LinkAdmin(admin.ModelAdmin):
    list_display = ("id", "offer", "publisher", "name", "fixed_conversion_rate", "created_at")
    search_fields = ("id", "offer__name", "publisher__email", "name")


@admin.register(Click)
class ClickAdmin(admin.ModelAdmin):
    list_display = ("click_id", "publisher", "offer", "link", "ip_address", "is_unique", "created_at")
    search_fields = ("click_id", "ip_address", "user_agent", "publisher__email")
    list_filter = ("is_unique",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
