import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from webstats import config
from webstats.crud import events
from webstats.enrichment import geolocation
from webstats import ingest


@pytest.fixture
def settings(monkeypatch):
    test_settings = config.Settings(
        storage_account_name="webstatstest",
        storage_account_key="key",
        container="analytics",
        collection="events",
        geoapify_api_key="geo-key",
        geolocation_endpoint="https://geo.test/v1/ipinfo",
        geolocation_timeout=1.0,
        log_file="webstats.log",
    )
    for module in (config, events, geolocation, ingest):
        monkeypatch.setattr(module, "get_settings", lambda: test_settings)
    return test_settings
