"""
Persistence adapters for the cart.

The whole cart is written as a single namespaced record on every mutation
and read back once when a cart store is created.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from storefront.config import Config
from storefront.models import CartLine

logger = logging.getLogger(__name__)


def serialize_cart(lines: List[CartLine]) -> str:
    """Encode lines as the persisted record"""
    return json.dumps({
        "state": {"cart": [line.model_dump(mode="json") for line in lines]},
        "version": Config.CART_STORAGE_VERSION,
    })


def deserialize_cart(raw: Optional[str]) -> List[CartLine]:
    """
    Decode a persisted record.

    An absent record is an empty cart. A record that does not parse, or was
    written under a different version, is discarded.
    """
    if not raw:
        return []

    try:
        record = json.loads(raw)
        if record.get("version") != Config.CART_STORAGE_VERSION:
            logger.warning(
                f"Discarding cart record with version {record.get('version')!r}, "
                f"expected {Config.CART_STORAGE_VERSION}"
            )
            return []
        return [CartLine.model_validate(item) for item in record["state"]["cart"]]
    except (json.JSONDecodeError, AttributeError, KeyError, TypeError, PydanticValidationError) as e:
        logger.warning(f"Discarding unreadable cart record: {type(e).__name__}: {e}")
        return []


class CartStorage(ABC):
    """Durable storage for one cart session"""

    @abstractmethod
    def load(self) -> List[CartLine]:
        ...

    @abstractmethod
    def save(self, lines: List[CartLine]) -> None:
        ...


class RedisCartStorage(CartStorage):
    """Stores the cart record under ``<CART_STORAGE_KEY>:<cart_id>`` in Redis"""

    def __init__(self, redis_client, cart_id: str, ttl: Optional[int] = None):
        self.redis = redis_client
        self.cart_id = cart_id
        self.ttl = ttl if ttl is not None else Config.CART_TTL_SECONDS

    @property
    def key(self) -> str:
        return f"{Config.CART_STORAGE_KEY}:{self.cart_id}"

    def load(self) -> List[CartLine]:
        return deserialize_cart(self.redis.get(self.key))

    def save(self, lines: List[CartLine]) -> None:
        self.redis.set(self.key, serialize_cart(lines), ex=self.ttl)
