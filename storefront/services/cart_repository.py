import os
import json
import logging
from abc import ABC, abstractmethod
from typing import Union, Optional

from pydantic import ValidationError

from storefront.modules.models import CartState

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "madha_tv_booking_cart"


class CartRepository(ABC):
    @abstractmethod
    def load(self) -> CartState:
        pass

    @abstractmethod
    def save(self, cart: CartState) -> None:
        pass

    def clear(self) -> None:
        self.save(CartState())


class InMemoryCartRepository(CartRepository):
    def __init__(self, cart: Optional[CartState] = None):
        self._data = cart.model_dump(mode="json") if cart else None

    def load(self) -> CartState:
        if self._data is None:
            return CartState()
        return CartState.model_validate(self._data)

    def save(self, cart: CartState) -> None:
        self._data = cart.model_dump(mode="json")


class JsonCartRepository(CartRepository):
    """
    Persists the cart to a JSON document under a fixed storage key, so several
    keyed entries can share one file. Booking dates are re-hydrated from ISO
    strings by model validation on load.
    """

    def __init__(self, path: Union[str, os.PathLike], storage_key: str = DEFAULT_STORAGE_KEY):
        self.path = str(path)
        self.storage_key = storage_key

    def _read_store(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r') as f:
            try:
                store = json.load(f)
            except json.JSONDecodeError:
                logger.warning(f"Cart store {self.path} is corrupt, starting empty")
                return {}
        return store if isinstance(store, dict) else {}

    def load(self) -> CartState:
        raw = self._read_store().get(self.storage_key)
        if not raw:
            return CartState()
        try:
            return CartState.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cart under '{self.storage_key}': {e}")
            return CartState()

    def save(self, cart: CartState) -> None:
        store = self._read_store()
        store[self.storage_key] = cart.model_dump(mode="json")
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(store, f, indent=2, sort_keys=False)
