"""Shared pytest fixtures for cart tests."""
import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CART_STORE", "memory")
os.environ.setdefault("PROMOTIONS_FILE", "")

from datetime import datetime, timezone
from decimal import Decimal
from itertools import count

import pytest

from medcart.domain.models import CartLineItem
from medcart.repos.blob_store import MemoryBlobStore
from medcart.repos.cart_repo import CartRepo
from medcart.services.cart_service import CartService
from medcart.services.promotion_catalog import PromotionCatalog

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_item(**overrides) -> CartLineItem:
    data = {
        "product_id": "coq10",
        "name": "CoQ10",
        "dosage": "100mg",
        "quantity": 1,
        "unit_price": Decimal("29.99"),
        "product_type": "supplement",
        "category": "Supplements",
    }
    data.update(overrides)
    return CartLineItem.model_validate(data)


def make_promotion(**overrides) -> dict:
    data = {
        "id": "promo",
        "kind": "discount",
        "title": "Promo",
        "discount_type": "percentage",
        "value": "10",
        "expiry_date": "2030-12-31",
        "auto_apply": True,
        "priority": 1,
    }
    data.update(overrides)
    return data


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def welcome_catalog():
    return PromotionCatalog.from_data([
        make_promotion(
            id="first_time_20",
            kind="first_time",
            value="20",
            min_purchase="50",
            max_discount="100",
        ),
    ])


@pytest.fixture
def code_catalog():
    return PromotionCatalog.from_data([
        make_promotion(id="save_10", discount_type="fixed", value="10", code="SAVE10", auto_apply=False),
        make_promotion(id="old_code", discount_type="fixed", value="5", code="OLD5",
                       auto_apply=False, expiry_date="2025-12-31"),
        make_promotion(id="ship_free", discount_type="shipping", value="0", code="SHIPFREE", auto_apply=False),
    ])


@pytest.fixture
def id_factory():
    seq = count(1)
    return lambda: f"cart_{next(seq)}"


@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture
def make_service(store, code_catalog):
    def _make(session_id="sess-1", catalog=None, product_client=None):
        return CartService(
            session_id=session_id,
            repo=CartRepo(store, session_id),
            catalog=catalog if catalog is not None else code_catalog,
            product_client=product_client,
            clock=lambda: NOW,
        )
    return _make
