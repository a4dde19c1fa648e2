from __future__ import annotations

from datetime import date

import pytest
from lxml import etree

from orderx.builder import OrderDocumentBuilder
from orderx.config import get_settings
from orderx.profiles import Profile
from orderx.writer import NS

ENV_VARS = (
    "ORDERX_DEFAULT_PROFILE",
    "ORDERX_STRICT_CAPABILITIES",
    "ORDERX_PRETTY_PRINT",
    "ORDERX_PDF_LANG",
)

TX = "rsm:SupplyChainTradeTransaction"
AGREEMENT = f"{TX}/ram:ApplicableHeaderTradeAgreement"
DELIVERY = f"{TX}/ram:ApplicableHeaderTradeDelivery"
SETTLEMENT = f"{TX}/ram:ApplicableHeaderTradeSettlement"
LINE = f"{TX}/ram:IncludedSupplyChainTradeLineItem"


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test against default settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def parse(builder: OrderDocumentBuilder) -> etree._Element:
    return etree.fromstring(builder.get_content_bytes())


def xpath(root: etree._Element, path: str) -> list:
    return root.xpath(path, namespaces=NS)


def text(root: etree._Element, path: str) -> str | None:
    found = xpath(root, path)
    return found[0].text if found else None


@pytest.fixture
def extended() -> OrderDocumentBuilder:
    return OrderDocumentBuilder(Profile.EXTENDED, strict=False)


@pytest.fixture
def comfort() -> OrderDocumentBuilder:
    return OrderDocumentBuilder(Profile.COMFORT, strict=False)


@pytest.fixture
def basic() -> OrderDocumentBuilder:
    return OrderDocumentBuilder(Profile.BASIC, strict=False)


@pytest.fixture
def order_date() -> date:
    return date(2024, 3, 15)
