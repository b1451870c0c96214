from pathlib import Path

import pytest

from functions.config import build_settings
from functions.models import ChannelEntry, SourceTag

ROOT = Path(__file__).resolve().parents[1]

BASE_CFG = {
    "sources": [{"tag": "au", "url": "https://example.test/au.m3u8"}],
    "filter": {
        "unwanted": {
            "religious": ["hope channel", "gospel"],
            "shopping": ["shop", "tvsn"],
            "kids": ["kids", "cartoon"],
        },
        "sources": {
            "au": {},
            "pluto": {"extra_keywords": ["pluto tv"], "allow": ["news", "movies"]},
            "samsung": {"exclude_prefixes": ["x-", "z "], "extra_keywords": ["samsung"]},
        },
    },
    "dedupe": {"regional_qualifiers": ["sydney", "melbourne", "nsw", "vic", "regional"]},
    "sort": {
        "deprioritized_id_prefixes": ["mjh-discovery", "mjh-mood"],
        "news_source": "au",
        "preferred_news": ["abc news", "sky news"],
    },
}


def make_entry(name, url=None, source=SourceTag.AU, **attrs):
    attr_str = "".join(f' {k.replace("_", "-")}="{v}"' for k, v in attrs.items())
    return ChannelEntry(
        extinf=f"#EXTINF:-1{attr_str},{name}",
        url=url or f"https://streams.test/{abs(hash((name, str(attrs))))}.m3u8",
        source=source,
    )


@pytest.fixture
def entry():
    return make_entry


@pytest.fixture
def settings():
    return build_settings(BASE_CFG)
