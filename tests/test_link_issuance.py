import uuid
from decimal import Decimal

import pytest

from apps.offers.models import Offer
from apps.publishers.models import Publisher
from apps.tracking.models import Link
from apps.tracking.services import issue_links
from core.exceptions import InvalidInput, NotFound

pytestmark = pytest.mark.django_db


@pytest.fixture
def rated_offer(db):
    return Offer.objects.create(
        name="Summer",
        offer_url="https://summer.example.com/",
        payout=Decimal("50.00"),
        fixed_conversion_rate=Decimal("4.00"),
    )


def test_issues_links_for_approved_publishers_only(rated_offer, publisher):
    Publisher.objects.create(name="Pending", email="pending@example.com", status="pending")

    links = issue_links(rated_offer)

    assert [link.publisher_id for link in links] == [publisher.id]
    assert links[0].fixed_conversion_rate == Decimal("4.00")
    assert links[0].name is None


def test_issuing_twice_reuses_the_link(rated_offer, publisher):
    first = issue_links(rated_offer, [publisher.id])
    second = issue_links(rated_offer, [publisher.id], name="  ")

    assert first[0].id == second[0].id
    assert Link.objects.count() == 1


def test_named_variants_get_their_own_link(rated_offer, publisher):
    default = issue_links(rated_offer, [publisher.id])[0]
    variant = issue_links(rated_offer, [publisher.id], name="instagram")[0]

    assert default.id != variant.id
    assert variant.name == "instagram"
    assert Link.objects.count() == 2


def test_unknown_publisher_is_not_found(rated_offer, publisher):
    with pytest.raises(NotFound):
        issue_links(rated_offer, [publisher.id, uuid.uuid4()])
    assert not Link.objects.exists()


def test_no_approved_publishers_is_invalid(rated_offer):
    with pytest.raises(InvalidInput):
        issue_links(rated_offer)


def test_issue_endpoint_requires_staff(api_client, rated_offer, publisher):
    response = api_client.post("/api/track/links/issue/", {"offer_id": rated_offer.id}, format="json")
    assert response.status_code == 403


def test_issue_endpoint_returns_tracking_urls(staff_client, rated_offer, publisher):
    response = staff_client.post(
        "/api/track/links/issue/",
        {"offer_id": rated_offer.id, "publisher_ids": [str(publisher.id)], "name": "blog"},
        format="json",
    )

    assert response.status_code == 201
    (item,) = response.json()
    link = Link.objects.get()
    assert item["id"] == str(link.id)
    assert item["name"] == "blog"
    assert item["publisher_email"] == "alice@example.com"
    assert "/api/track/click/?" in item["tracking_url"]
    assert f"link_id={link.id}" in item["tracking_url"]
    assert f"offer_id={rated_offer.id}" in item["tracking_url"]


def test_issue_endpoint_unknown_offer(staff_client, publisher):
    response = staff_client.post("/api/track/links/issue/", {"offer_id": 9999}, format="json")
    assert response.status_code == 404


def test_list_links_filtered_by_offer(staff_client, rated_offer, offer, publisher):
    issue_links(rated_offer, [publisher.id])
    issue_links(offer, [publisher.id])

    response = staff_client.get("/api/track/links/", {"offer_id": rated_offer.id})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["results"][0]["offer"] == rated_offer.id


def test_list_links_filtered_by_publisher_email(staff_client, rated_offer, publisher):
    other = Publisher.objects.create(name="Bob", email="bob@example.com", status="approved")
    issue_links(rated_offer, [publisher.id, other.id])

    response = staff_client.get("/api/track/links/", {"publisher_id": "BOB@example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["results"][0]["publisher"] == str(other.id)


def test_list_links_unknown_publisher_email_is_not_found(staff_client, rated_offer, publisher):
    issue_links(rated_offer, [publisher.id])

    response = staff_client.get("/api/track/links/", {"publisher_id": "nobody@example.com"})

    assert response.status_code == 404


def test_list_links_rejects_non_numeric_offer(staff_client, rated_offer, publisher):
    issue_links(rated_offer, [publisher.id])

    response = staff_client.get("/api/track/links/", {"offer_id": "abc"})

    assert response.status_code == 400


def test_list_links_search_by_name(staff_client, rated_offer, publisher):
    issue_links(rated_offer, [publisher.id])
    issue_links(rated_offer, [publisher.id], name="newsletter")

    response = staff_client.get("/api/track/links/", {"search": "newsletter"})

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["results"]] == ["newsletter"]
