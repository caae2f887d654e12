from __future__ import annotations

import json
from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

from rest_framework.test import APIClient

from apps.conversions.models import Conversion
from apps.offers.models import Offer, OfferPublisher
from apps.publishers.models import Publisher
from apps.tracking.models import Click, Link
from apps.tracking.services import issue_links


def _print(title: str, data) -> None:
    print(f"\n=== {title} ===")
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)


def run() -> None:
    """
    Manual smoke test walking a click through both conversion paths.

    Run with:
      python manage.py shell --settings=config.settings.testing -c "from scripts.smoke_test_endpoints import run; run()"
    """
    # Clean tables for a deterministic run
    Conversion.objects.all().delete()
    Click.objects.all().delete()
    Link.objects.all().delete()
    OfferPublisher.objects.all().delete()
    Offer.objects.all().delete()
    Publisher.objects.all().delete()

    publisher = Publisher.objects.create(name="Smoke Publisher", email="smoke@example.com", status="approved")
    offer = Offer.objects.create(
        name="Smoke Offer",
        offer_url="https://advertiser.example.com/landing",
        payout=Decimal("200.00"),
    )
    OfferPublisher.objects.create(offer=offer, publisher=publisher, commission_percent=Decimal("15"))
    link = issue_links(offer, [publisher.id])[0]
    _print("Seeded", {"publisher": str(publisher.id), "offer": offer.id, "link": str(link.id)})

    client = APIClient()

    resp = client.get(
        "/api/track/click/",
        {"pub_id": publisher.email, "offer_id": offer.id, "link_id": str(link.id)},
        HTTP_USER_AGENT="smoke-test",
    )
    _print("Click", {"status": resp.status_code, "location": resp.get("Location")})
    click_id = parse_qs(urlsplit(resp["Location"]).query)["click_id"][0]

    resp = client.get("/api/track/click/", {"pub_id": publisher.email, "offer_id": offer.id})
    _print("Repeat click", {"status": resp.status_code, "unique_flags": list(Click.objects.values_list("is_unique", flat=True))})

    resp = client.get("/api/track/convert/", {"click_id": click_id, "amount": "120.00"})
    _print("Direct conversion", {"status": resp.status_code, "body": resp.json()})

    resp = client.get("/api/track/convert/", {"click_id": click_id})
    _print("Duplicate direct conversion", {"status": resp.status_code, "body": resp.json()})

    resp = client.post("/api/webhook/conversion/", {"link_id": str(link.id)}, format="json")
    _print("Webhook conversion", {"status": resp.status_code, "body": resp.json()})

    resp = client.post("/api/webhook/conversion/", {}, format="json")
    _print("Webhook without link_id", {"status": resp.status_code, "body": resp.json()})

    _print("Conversions", list(Conversion.objects.values("amount", "commission_amount", "click__click_id")))
