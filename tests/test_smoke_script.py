from decimal import Decimal

import pytest

from apps.conversions.models import Conversion
from scripts.smoke_test_endpoints import run

pytestmark = pytest.mark.django_db


def test_smoke_script_walks_both_conversion_paths(capsys):
    run()

    output = capsys.readouterr().out
    assert "=== Direct conversion ===" in output
    assert "=== Webhook without link_id ===" in output
    assert sorted(Conversion.objects.values_list("commission_amount", flat=True)) == [
        Decimal("18.00"),
        Decimal("30.00"),
    ]
