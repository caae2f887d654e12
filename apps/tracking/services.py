from __future__ import annotations

import ipaddress
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from django.conf import settings
from django.db import IntegrityError, transaction
from django.http import HttpRequest, HttpResponse
from django.utils import timezone

from apps.offers.models import Offer
from apps.publishers.models import Publisher
from core.exceptions import InvalidInput, NotFound

from .models import Click, Link

logger = logging.getLogger(__name__)

SEEN_MARKER_SALT = "tracking.seen"


@dataclass
class ClickResult:
    click: Click
    redirect_url: str


def client_ip(request: HttpRequest) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    candidates = [forwarded.split(",")[0].strip()] if forwarded else []
    candidates.append(request.META.get("REMOTE_ADDR", ""))
    for candidate in candidates:
        try:
            return str(ipaddress.ip_address(candidate))
        except ValueError:
            continue
    return "0.0.0.0"


def parse_offer_id(raw: object) -> int:
    try:
        offer_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInput("Missing or invalid offer_id")
    if offer_id <= 0:
        raise InvalidInput("Missing or invalid offer_id")
    return offer_id


def seen_marker_name(publisher_id: uuid.UUID, offer_id: int) -> str:
    return f"{settings.TRACKING['SEEN_COOKIE_PREFIX']}_{publisher_id.hex}_{offer_id}"


def has_seen_marker(request: HttpRequest, publisher_id: uuid.UUID, offer_id: int) -> bool:
    value = request.get_signed_cookie(
        seen_marker_name(publisher_id, offer_id),
        default=None,
        salt=SEEN_MARKER_SALT,
        max_age=settings.TRACKING["SEEN_COOKIE_MAX_AGE"],
    )
    return value == "1"


def set_seen_marker(response: HttpResponse, publisher_id: uuid.UUID, offer_id: int) -> None:
    response.set_signed_cookie(
        seen_marker_name(publisher_id, offer_id),
        "1",
        salt=SEEN_MARKER_SALT,
        max_age=settings.TRACKING["SEEN_COOKIE_MAX_AGE"],
        httponly=True,
        secure=settings.TRACKING["SECURE_COOKIES"],
        samesite="Lax",
    )


def is_unique_click(
    publisher_id: uuid.UUID,
    offer_id: int,
    ip_address: str,
    user_agent: str,
    seen_marker: bool = False,
    now: Optional[datetime] = None,
) -> bool:
    """
    Best-effort uniqueness: a click is unique unless the caller already
    carries a seen marker, or the same fingerprint produced a unique click
    inside the rolling window. Concurrent identical clicks may both pass.
    """
    if seen_marker:
        return False
    now = now or timezone.now()
    window_start = now - settings.TRACKING["UNIQUE_CLICK_WINDOW"]
    return not Click.objects.filter(
        publisher_id=publisher_id,
        offer_id=offer_id,
        ip_address=ip_address,
        user_agent=user_agent,
        is_unique=True,
        created_at__gte=window_start,
    ).exists()


def build_redirect_url(offer_url: str, click_id: uuid.UUID, link_id: Optional[uuid.UUID] = None) -> str:
    parts = urlsplit(offer_url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in ("click_id", "link_id")
    ]
    query.append(("click_id", str(click_id)))
    if link_id is not None:
        query.append(("link_id", str(link_id)))
    return urlunsplit(parts._replace(query=urlencode(query)))


def _resolve_link(raw_link_id: str, offer_id: int, publisher_id: uuid.UUID) -> Link:
    try:
        link_id = uuid.UUID(str(raw_link_id).strip())
    except ValueError:
        raise InvalidInput("Invalid link_id")
    link = Link.objects.filter(pk=link_id).first()
    if link is None:
        raise NotFound("Link not found")
    if link.offer_id != offer_id or link.publisher_id != publisher_id:
        raise InvalidInput("Link does not belong to this publisher and offer")
    return link


def record_click(
    publisher_id: uuid.UUID,
    offer_id: int,
    link_id: Optional[str] = None,
    ip_address: str = "0.0.0.0",
    user_agent: str = "",
    seen_marker: bool = False,
) -> ClickResult:
    # Referenced rows are checked before the write so a persisted click
    # always has a redirect target.
    offer = Offer.objects.filter(pk=offer_id).only("id", "offer_url").first()
    if offer is None:
        logger.warning("Click rejected: offer %s not found (publisher %s)", offer_id, publisher_id)
        raise NotFound("Offer not found")
    if not Publisher.objects.filter(pk=publisher_id).exists():
        logger.warning("Click rejected: publisher %s not found (offer %s)", publisher_id, offer_id)
        raise NotFound("Publisher not found")

    link = _resolve_link(link_id, offer_id, publisher_id) if link_id else None

    unique = is_unique_click(
        publisher_id=publisher_id,
        offer_id=offer_id,
        ip_address=ip_address,
        user_agent=user_agent,
        seen_marker=seen_marker,
    )

    with transaction.atomic():
        click = Click.objects.create(
            publisher_id=publisher_id,
            offer_id=offer_id,
            link=link,
            ip_address=ip_address,
            user_agent=user_agent,
            is_unique=unique,
        )

    logger.info(
        "Recorded click %s publisher=%s offer=%s link=%s unique=%s",
        click.click_id,
        publisher_id,
        offer_id,
        link.id if link else None,
        unique,
    )
    return ClickResult(
        click=click,
        redirect_url=build_redirect_url(offer.offer_url, click.click_id, link.id if link else None),
    )


def issue_links(
    offer: Offer,
    publisher_ids: Optional[Iterable[uuid.UUID]] = None,
    name: Optional[str] = None,
) -> list[Link]:
    """
    Issue tracking links for an offer. Without explicit publishers every
    approved publisher gets one. Existing links are reused.
    """
    name = (name or "").strip() or None

    if publisher_ids:
        wanted = set(publisher_ids)
        publishers = list(Publisher.objects.filter(id__in=wanted))
        missing = wanted - {p.id for p in publishers}
        if missing:
            raise NotFound(f"Publisher not found: {', '.join(sorted(str(m) for m in missing))}")
    else:
        publishers = list(Publisher.objects.filter(status="approved"))

    if not publishers:
        raise InvalidInput("No publishers found.")

    links: list[Link] = []
    for publisher in publishers:
        link = Link.objects.filter(offer=offer, publisher=publisher, name=name).first()
        if link is None:
            try:
                with transaction.atomic():
                    link = Link.objects.create(
                        offer=offer,
                        publisher=publisher,
                        name=name,
                        fixed_conversion_rate=offer.fixed_conversion_rate,
                    )
                logger.info("Issued link %s offer=%s publisher=%s", link.id, offer.pk, publisher.pk)
            except IntegrityError:
                link = Link.objects.get(offer=offer, publisher=publisher, name=name)
        links.append(link)
    return links
