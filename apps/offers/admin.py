from django.contrib import admin

from .models import Offer, OfferPublisher


class OfferPublisherInline(admin.TabularInline):
    model = OfferPublisher
    extra = 0


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "payout", "currency", "status", "created_at")
    search_fields = ("name", "offer_url")
    list_filter = ("status", "currency")
    inlines = [OfferPublisherInline]


@admin.register(OfferPublisher)
class OfferPublisherAdmin(admin.ModelAdmin):
    list_display = ("offer", "publisher", "commission_percent", "commission_cut")
    search_fields = ("offer__name", "publisher__email")
