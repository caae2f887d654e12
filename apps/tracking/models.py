import uuid

from django.db import models


class Link(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    offer = models.ForeignKey(
        "offers.Offer",
        on_delete=models.CASCADE,
        related_name="links",
    )
    publisher = models.ForeignKey(
        "publishers.Publisher",
        on_delete=models.CASCADE,
        related_name="links",
    )
    name = models.CharField(max_length=100, blank=True, null=True)
    fixed_conversion_rate = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["offer", "publisher"],
                condition=models.Q(name__isnull=True),
                name="unique_unnamed_link_per_offer_publisher",
            ),
            models.UniqueConstraint(
                fields=["offer", "publisher", "name"],
                name="unique_named_link_per_offer_publisher",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.offer_id} / {self.publisher_id} ({self.name or 'default'})"


class Click(models.Model):
    id = models.BigAutoField(primary_key=True)
    click_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    publisher = models.ForeignKey(
        "publishers.Publisher",
        on_delete=models.CASCADE,
        related_name="clicks",
    )
    offer = models.ForeignKey(
        "offers.Offer",
        on_delete=models.CASCADE,
        related_name="clicks",
    )
    link = models.ForeignKey(
        Link,
        on_delete=models.SET_NULL,
        related_name="clicks",
        null=True,
        blank=True,
    )
    ip_address = models.GenericIPAddressField()
    user_agent = models.TextField(blank=True, default="")
    is_unique = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        indexes = [
            models.Index(
                fields=["publisher", "offer", "ip_address", "created_at"],
                name="tracking_click_fprint_idx",
            ),
        ]

    def __str__(self) -> str:
        return str(self.click_id)

    def save(self, *args, **kwargs):
        # Click rows are write-once.
        if not self._state.adding:
            raise ValueError("Clicks are immutable once recorded")
        super().save(*args, **kwargs)
