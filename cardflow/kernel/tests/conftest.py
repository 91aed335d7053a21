"""
Kernel test configuration.

Shared card fixtures.
Kernel tests are synchronous and need no event loop.
"""

from __future__ import annotations

import json

import pytest

COMPANY_CARD = {
    "cardTitle": "Acme Corp",
    "cardSubtitle": "Industrial supplies",
    "cardType": "company",
    "sections": [
        {
            "title": "Company Overview",
            "type": "overview",
            "fields": [
                {"label": "Industry", "value": "Manufacturing"},
                {"label": "Founded", "value": 1952},
            ],
        },
        {
            "title": "Key Metrics",
            "type": "analytics",
            "fields": [
                {"label": "Revenue", "value": 120.5, "change": 4.2, "trend": "up"},
                {"label": "Employees", "value": 5400, "percentage": 12},
            ],
        },
        {
            "title": "Contacts",
            "type": "contact-card",
            "fields": [
                {"name": "Jane Doe", "role": "CEO", "email": "jane@acme.test"},
            ],
        },
    ],
    "actions": [{"label": "Visit website", "type": "website", "url": "https://acme.test"}],
}


@pytest.fixture
def company_card() -> dict:
    return json.loads(json.dumps(COMPANY_CARD))


@pytest.fixture
def company_text() -> str:
    return json.dumps(COMPANY_CARD)

