import uuid

from core.exceptions import InvalidInput, NotFound

from .models import Publisher


def resolve_publisher_id(raw: str | None) -> uuid.UUID:
    """
    Map a publisher identifier to the canonical publisher id.

    Identifiers containing ``@`` are emails and must match a Publisher.
    Anything else is taken to be the canonical id already; existence is
    not checked here.
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidInput("Missing pub_id")

    if "@" in value:
        publisher_id = (
            Publisher.objects.filter(email__iexact=value).values_list("id", flat=True).first()
        )
        if publisher_id is None:
            raise NotFound("Publisher not found")
        return publisher_id

    try:
        return uuid.UUID(value)
    except ValueError:
        raise NotFound("Publisher not found")
