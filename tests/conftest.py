from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.offers.models import Offer, OfferPublisher
from apps.publishers.models import Publisher
from apps.tracking.models import Link

OFFER_URL = "https://advertiser.example.com/landing?src=aff"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def staff_client(db) -> APIClient:
    User = get_user_model()
    staff = User.objects.create_user(username="ops", password="Ops12345!", is_staff=True)
    client = APIClient()
    client.force_authenticate(user=staff)
    return client


@pytest.fixture
def publisher(db) -> Publisher:
    return Publisher.objects.create(name="Alice", email="alice@example.com", status="approved")


@pytest.fixture
def offer(db) -> Offer:
    return Offer.objects.create(
        id=42,
        name="Spring Sale",
        offer_url=OFFER_URL,
        payout=Decimal("200.00"),
        currency="USD",
    )


@pytest.fixture
def offer_rule(offer, publisher) -> OfferPublisher:
    return OfferPublisher.objects.create(
        offer=offer,
        publisher=publisher,
        commission_percent=Decimal("15"),
    )


@pytest.fixture
def link(offer, publisher) -> Link:
    return Link.objects.create(offer=offer, publisher=publisher)


@pytest.fixture
def legacy_precedence(settings):
    settings.TRACKING = {**settings.TRACKING, "COMMISSION_PRECEDENCE": "legacy"}
