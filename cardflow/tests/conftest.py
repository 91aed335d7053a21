"""
Pytest configuration and fixtures for cardflow service tests.
"""

from __future__ import annotations

import json

import pytest
import pytest_asyncio

from cardflow.services.ingestion import IngestionLoop
from cardflow.services.pipeline import PreviewPipeline


def card_text(title: str = "Acme", *section_titles: str) -> str:
    sections = [
        {"title": name, "type": "info", "fields": [{"label": "Name", "value": name}]}
        for name in (section_titles or ("Overview", "Details"))
    ]
    return json.dumps({"cardTitle": title, "cardType": "company", "sections": sections})


@pytest.fixture
def make_card_text():
    return card_text


@pytest.fixture
def pipeline() -> PreviewPipeline:
    return PreviewPipeline(width=1300)


@pytest_asyncio.fixture
async def ingestion():
    """Ingestion loop with a 20ms window collecting every update; closed on teardown."""
    updates = []
    loop = IngestionLoop(updates.append, debounce_ms=20)
    yield loop, updates
    loop.close()
