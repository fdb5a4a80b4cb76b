# medcart/api/deps.py
from functools import lru_cache

from medcart.repos.blob_store import BlobStore, build_store
from medcart.services.product_client import ProductClient
from medcart.services.promotion_catalog import PromotionCatalog, load_catalog
from medcart.utils.settings import CART_STORE, PROMOTIONS_FILE


@lru_cache
def get_catalog() -> PromotionCatalog:
    # config errors surface at first use, not inside a checkout total
    return load_catalog(PROMOTIONS_FILE)


@lru_cache
def get_store() -> BlobStore:
    return build_store(CART_STORE)


def get_product_client() -> ProductClient:
    return ProductClient()
