# medcart/repos/cart_repo.py
from pydantic import ValidationError

from medcart.domain.models import CartState
from medcart.repos.blob_store import BlobStore
from medcart.utils.logging import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "medical_cart"


class CartRepo:
    """
    Durable snapshot of one session's cart.

    save() never raises; load() returns the last valid snapshot or an empty
    cart. A snapshot is restored whole or not at all.
    """

    def __init__(self, store: BlobStore, session_id: str):
        self.store = store
        self.session_id = session_id
        self.key = f"{KEY_PREFIX}:{session_id}"

    def save(self, state: CartState) -> bool:
        try:
            self.store.set(self.key, state.model_dump_json())
        except Exception as e:
            logger.warning(f"Failed to save cart {self.key} (version {state.version}): {e}")
            return False
        return True

    def load(self) -> CartState:
        try:
            blob = self.store.get(self.key)
        except Exception as e:
            logger.warning(f"Failed to read cart {self.key}, starting empty: {e}")
            return CartState()

        if not blob:
            return CartState()

        try:
            return CartState.model_validate_json(blob)
        except ValidationError as e:
            logger.warning(f"Corrupt cart snapshot {self.key}, starting empty: {e}")
            return CartState()
