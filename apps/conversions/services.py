from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction

from apps.offers.models import OfferPublisher
from apps.tracking.models import Click, Link
from core.exceptions import Conflict, InvalidInput, NotFound

from .calculator import LEGACY, UNIFIED, compute_commission, resolve_commission_rule
from .models import Conversion
from .tasks import fire_publisher_postback

logger = logging.getLogger(__name__)

DUPLICATE_CLICK_CONVERSION = "Conversion already recorded for this click and offer"
DUPLICATE_WEBHOOK_EVENT = "Conversion already recorded for this idempotency key"
IDEMPOTENCY_KEY_MAX_LENGTH = Conversion._meta.get_field("idempotency_key").max_length


def commission_precedence() -> str:
    precedence = settings.TRACKING["COMMISSION_PRECEDENCE"]
    if precedence not in (UNIFIED, LEGACY):
        raise ImproperlyConfigured(f"Unknown COMMISSION_PRECEDENCE: {precedence!r}")
    return precedence


def _offer_publisher_rule(offer_id: int, publisher_id: uuid.UUID) -> Optional[OfferPublisher]:
    return OfferPublisher.objects.filter(offer_id=offer_id, publisher_id=publisher_id).first()


def _resolve_rule(link: Optional[Link], offer_id: int, publisher_id: uuid.UUID, precedence: str):
    binding = _offer_publisher_rule(offer_id, publisher_id)
    return resolve_commission_rule(
        link_rate=link.fixed_conversion_rate if link else None,
        percent=binding.commission_percent if binding else None,
        cut=binding.commission_cut if binding else None,
        precedence=precedence,
    )


def _persist_conversion(duplicate_message: str, **fields) -> Conversion:
    # The unique constraints decide; the earlier existence checks only
    # save a round trip in the common case.
    try:
        with transaction.atomic():
            conversion = Conversion.objects.create(**fields)
    except IntegrityError:
        logger.warning(
            "Duplicate conversion rejected at insert: click=%s offer=%s link=%s",
            fields.get("click"),
            fields.get("offer"),
            fields.get("link"),
        )
        raise Conflict(duplicate_message)

    if conversion.publisher.postback_url:
        conversion_id = str(conversion.id)
        # Runs after the row is committed; broker errors are logged, not raised.
        transaction.on_commit(lambda: fire_publisher_postback.delay(conversion_id), robust=True)
    return conversion


def _direct_amounts(click: Click, amount: Optional[Decimal], precedence: str) -> tuple[Decimal, Decimal]:
    if precedence == LEGACY:
        revenue = amount if amount is not None else Decimal("0")
        return revenue, revenue

    revenue = amount if amount is not None else click.offer.payout
    rule = _resolve_rule(click.link, click.offer_id, click.publisher_id, precedence)
    if rule is None:
        raise NotFound("No commission rule configured for this offer and publisher")
    return revenue, compute_commission(revenue, rule)


def record_direct_conversion(
    click_token: Optional[uuid.UUID],
    offer_id: Optional[int] = None,
    amount: Optional[Decimal] = None,
) -> Conversion:
    """Attribute a conversion to the click carrying ``click_token``."""
    if not click_token:
        raise InvalidInput("Missing click_id")
    if amount is not None and amount < 0:
        raise InvalidInput("amount must not be negative")

    click = (
        Click.objects.select_related("offer", "publisher", "link")
        .filter(click_id=click_token)
        .first()
    )
    if click is None:
        logger.warning("Conversion rejected: click %s not found", click_token)
        raise NotFound("Click not found")

    if offer_id is not None and offer_id != click.offer_id:
        logger.warning("Conversion rejected: offer %s does not match click %s", offer_id, click_token)
        raise InvalidInput("Offer mismatch for click")

    if Conversion.objects.filter(click=click, offer_id=click.offer_id).exists():
        raise Conflict(DUPLICATE_CLICK_CONVERSION)

    revenue, commission = _direct_amounts(click, amount, commission_precedence())

    conversion = _persist_conversion(
        DUPLICATE_CLICK_CONVERSION,
        click=click,
        offer=click.offer,
        publisher=click.publisher,
        link=click.link,
        amount=revenue,
        commission_amount=commission,
        currency=click.offer.currency,
    )
    logger.info(
        "Recorded conversion %s for click %s amount=%s commission=%s",
        conversion.id,
        click.click_id,
        revenue,
        commission,
    )
    return conversion


def record_webhook_conversion(
    link_id: Optional[uuid.UUID],
    idempotency_key: Optional[str] = None,
) -> Conversion:
    """
    Attribute a conversion to a tracking link.

    Without an idempotency key there is nothing to deduplicate on, so
    replays create new rows.
    """
    if not link_id:
        raise InvalidInput("link_id is required.")

    idempotency_key = (idempotency_key or "").strip() or None
    if idempotency_key and len(idempotency_key) > IDEMPOTENCY_KEY_MAX_LENGTH:
        raise InvalidInput(f"Idempotency key must be at most {IDEMPOTENCY_KEY_MAX_LENGTH} characters")

    link = Link.objects.select_related("offer", "publisher").filter(pk=link_id).first()
    if link is None:
        logger.warning("Webhook conversion rejected: link %s not found", link_id)
        raise NotFound("Invalid link_id.")

    offer = link.offer
    rule = _resolve_rule(link, offer.pk, link.publisher_id, commission_precedence())
    if rule is None:
        logger.warning(
            "Webhook conversion rejected: no commission rule for offer %s publisher %s",
            offer.pk,
            link.publisher_id,
        )
        raise NotFound("Commission rule not found for this offer-publisher combination.")

    if idempotency_key and Conversion.objects.filter(link=link, idempotency_key=idempotency_key).exists():
        raise Conflict(DUPLICATE_WEBHOOK_EVENT)

    commission = compute_commission(offer.payout, rule)
    conversion = _persist_conversion(
        DUPLICATE_WEBHOOK_EVENT,
        offer=offer,
        publisher=link.publisher,
        link=link,
        amount=offer.payout,
        commission_amount=commission,
        currency=offer.currency,
        idempotency_key=idempotency_key,
    )
    logger.info(
        "Recorded webhook conversion %s for link %s payout=%s commission=%s",
        conversion.id,
        link.id,
        offer.payout,
        commission,
    )
    return conversion
