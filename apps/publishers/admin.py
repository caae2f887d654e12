from django.contrib import admin

from .models import Publisher


@admin.register(Publisher)
class PublisherAdmin(admin.ModelAdmin):
    list_display = ("email", "name", "status", "created_at")
    search_fields = ("email", "name")
    list_filter = ("status",)
