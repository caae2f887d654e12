import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest import mock

import pytest
from django.db import connection
from django.db.models import QuerySet

from apps.conversions.models import Conversion
from apps.conversions.services import record_direct_conversion
from apps.tracking.models import Link
from apps.tracking.services import record_click
from core.exceptions import Conflict, NotFound

pytestmark = pytest.mark.django_db

CONVERT_URL = "/api/track/convert/"


@pytest.fixture
def click(publisher, offer):
    return record_click(publisher_id=publisher.id, offer_id=offer.id, ip_address="198.51.100.7").click


def test_conversion_with_amount(api_client, click, offer_rule):
    response = api_client.get(
        CONVERT_URL,
        {"click_id": str(click.click_id), "offer_id": 42, "amount": "100.00"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["conversion"]["click_id"] == str(click.click_id)

    conversion = Conversion.objects.get()
    assert conversion.click_id == click.pk
    assert conversion.offer_id == 42
    assert conversion.publisher_id == click.publisher_id
    assert conversion.amount == Decimal("100.00")
    assert conversion.commission_amount == Decimal("15.00")
    assert conversion.currency == "USD"
    assert conversion.status == "pending"


def test_amount_defaults_to_offer_payout(api_client, click, offer_rule):
    response = api_client.get(CONVERT_URL, {"click_id": str(click.click_id), "amount": ""})

    assert response.status_code == 200
    conversion = Conversion.objects.get()
    assert conversion.amount == Decimal("200.00")
    assert conversion.commission_amount == Decimal("30.00")


def test_link_rate_overrides_percentage(publisher, offer, offer_rule):
    link = Link.objects.create(offer=offer, publisher=publisher, fixed_conversion_rate=Decimal("7.50"))
    click = record_click(publisher_id=publisher.id, offer_id=offer.id, link_id=str(link.id)).click

    conversion = record_direct_conversion(click.click_id, amount=Decimal("80.00"))

    assert conversion.link_id == link.id
    assert conversion.commission_amount == Decimal("7.50")


def test_second_conversion_for_same_click_conflicts(api_client, click, offer_rule):
    params = {"click_id": str(click.click_id), "offer_id": 42, "amount": "10.00"}
    first = api_client.get(CONVERT_URL, params)
    second = api_client.get(CONVERT_URL, params)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["detail"] == "Conversion already recorded for this click and offer"
    assert Conversion.objects.count() == 1


def test_repeated_submissions_yield_exactly_one_success(api_client, click, offer_rule):
    params = {"click_id": str(click.click_id)}
    statuses = [api_client.get(CONVERT_URL, params).status_code for _ in range(5)]

    assert statuses.count(200) == 1
    assert statuses.count(409) == 4
    assert Conversion.objects.count() == 1


def test_insert_race_is_closed_by_constraint(click, offer_rule):
    record_direct_conversion(click.click_id)

    # Simulate a concurrent request that passed the existence check before
    # the first insert committed.
    with mock.patch.object(QuerySet, "exists", return_value=False):
        with pytest.raises(Conflict):
            record_direct_conversion(click.click_id)

    assert Conversion.objects.count() == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_submissions_yield_exactly_one_success(click, offer_rule):
    if connection.vendor == "sqlite":
        # SQLite fails concurrent writers with "database table is locked"
        # instead of blocking them on the unique index.
        pytest.skip("needs a server database; run with TEST_DB_ENGINE=server")

    workers = 8
    barrier = threading.Barrier(workers, timeout=10)

    def submit(_):
        barrier.wait()
        try:
            record_direct_conversion(click.click_id)
            return "created"
        except Conflict:
            return "conflict"
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(submit, range(workers)))

    assert outcomes.count("created") == 1
    assert outcomes.count("conflict") == workers - 1
    assert Conversion.objects.count() == 1


def test_unknown_click_is_not_found(api_client, offer_rule):
    response = api_client.get(CONVERT_URL, {"click_id": str(uuid.uuid4())})

    assert response.status_code == 404
    assert response.json()["detail"] == "Click not found"
    assert not Conversion.objects.exists()


@pytest.mark.parametrize(
    "params",
    [
        {},
        {"click_id": ""},
        {"click_id": "not-a-uuid"},
    ],
)
def test_missing_or_malformed_token_is_invalid(api_client, params):
    response = api_client.get(CONVERT_URL, params)
    assert response.status_code == 400
    assert not Conversion.objects.exists()


@pytest.mark.parametrize("amount", ["-1.00", "abc", "1.234"])
def test_bad_amount_is_invalid(api_client, click, offer_rule, amount):
    response = api_client.get(CONVERT_URL, {"click_id": str(click.click_id), "amount": amount})
    assert response.status_code == 400
    assert not Conversion.objects.exists()


def test_offer_mismatch_is_invalid(api_client, click, offer_rule):
    response = api_client.get(CONVERT_URL, {"click_id": str(click.click_id), "offer_id": 7})

    assert response.status_code == 400
    assert response.json()["detail"] == "Offer mismatch for click"
    assert not Conversion.objects.exists()


def test_missing_commission_rule_is_rejected(click):
    with pytest.raises(NotFound):
        record_direct_conversion(click.click_id, amount=Decimal("10.00"))
    assert not Conversion.objects.exists()


def test_legacy_mode_passes_amount_through(legacy_precedence, click):
    conversion = record_direct_conversion(click.click_id, offer_id=42, amount=Decimal("12.34"))

    assert conversion.amount == Decimal("12.34")
    assert conversion.commission_amount == Decimal("12.34")


def test_legacy_mode_defaults_amount_to_zero(legacy_precedence, click):
    conversion = record_direct_conversion(click.click_id)

    assert conversion.amount == Decimal("0")
    assert conversion.commission_amount == Decimal("0")
