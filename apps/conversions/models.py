import uuid

from django.db import models


class Conversion(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    click = models.ForeignKey(
        "tracking.Click",
        on_delete=models.CASCADE,
        related_name="conversions",
        null=True,
        blank=True,
    )
    offer = models.ForeignKey(
        "offers.Offer",
        on_delete=models.CASCADE,
        related_name="conversions",
    )
    publisher = models.ForeignKey(
        "publishers.Publisher",
        on_delete=models.CASCADE,
        related_name="conversions",
    )
    link = models.ForeignKey(
        "tracking.Link",
        on_delete=models.SET_NULL,
        related_name="conversions",
        null=True,
        blank=True,
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    idempotency_key = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["click", "offer"],
                name="unique_conversion_per_click_offer",
            ),
            models.UniqueConstraint(
                fields=["link", "idempotency_key"],
                name="unique_conversion_per_link_idempotency_key",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.id} ({self.commission_amount} {self.currency})"
