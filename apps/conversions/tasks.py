import logging
import re
from typing import Optional
from urllib.parse import quote

import requests
from celery import shared_task
from django.conf import settings

from .models import Conversion

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{(\w+)\}")


def build_postback_url(template: str, conversion: Conversion) -> str:
    values = {
        "click_id": conversion.click.click_id if conversion.click_id else "",
        "conversion_id": conversion.id,
        "offer_id": conversion.offer_id,
        "link_id": conversion.link_id or "",
        "amount": conversion.amount,
        "commission": conversion.commission_amount,
        "currency": conversion.currency,
    }
    return PLACEHOLDER.sub(lambda m: quote(str(values.get(m.group(1), "")), safe=""), template)


@shared_task
def fire_publisher_postback(conversion_id: str) -> Optional[int]:
    try:
        conversion = Conversion.objects.select_related("publisher", "click").get(id=conversion_id)
    except Conversion.DoesNotExist:
        return None

    template = conversion.publisher.postback_url
    if not template:
        return None

    url = build_postback_url(template, conversion)
    try:
        response = requests.get(url, timeout=settings.TRACKING["POSTBACK_TIMEOUT"])
    except requests.RequestException:
        logger.exception("Postback for conversion %s failed: %s", conversion_id, url)
        return None

    if response.status_code >= 400:
        logger.warning("Postback for conversion %s returned %s: %s", conversion_id, response.status_code, url)
    else:
        logger.info("Postback for conversion %s delivered (%s)", conversion_id, response.status_code)
    return response.status_code
