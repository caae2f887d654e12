from django.db import models


class Offer(models.Model):
    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("paused", "Paused"),
        ("expired", "Expired"),
        ("terminated", "Terminated"),
    ]

    name = models.CharField(max_length=255)
    offer_url = models.URLField(max_length=2048)
    payout = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default="USD")
    fixed_conversion_rate = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class OfferPublisher(models.Model):
    """Per-publisher commission rule for an offer."""

    offer = models.ForeignKey(
        Offer,
        on_delete=models.CASCADE,
        related_name="publisher_rules",
    )
    publisher = models.ForeignKey(
        "publishers.Publisher",
        on_delete=models.CASCADE,
        related_name="offer_rules",
    )
    commission_percent = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True)
    commission_cut = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("offer", "publisher")

    def __str__(self) -> str:
        return f"{self.offer_id} / {self.publisher_id}"
