from __future__ import annotations

import logging
from typing import Generic, Iterable, Iterator, List, Optional, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class EntityStore(Generic[T]):
    """
    Ordered in-memory copy of the rows a view fetched.

    Mutations are applied only after the backend accepted them (call, then
    patch); the store never re-fetches and never checks versions, so the last
    patch applied locally wins.
    """

    def __init__(self, items: Iterable[T] = ()):
        self._items: List[T] = list(items)

    def load(self, items: Iterable[T]) -> None:
        self._items = list(items)

    @property
    def items(self) -> List[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def get(self, entity_id: str) -> Optional[T]:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def prepend(self, entity: T) -> T:
        """A freshly created row goes to the front."""
        self._items.insert(0, entity)
        return entity

    def append(self, entities: Iterable[T]) -> None:
        self._items.extend(entities)

    def replace(self, updated: BaseModel) -> bool:
        """
        Swap in the row the backend returned for an update. Fields the response
        does not carry (view-only counts) keep their previous values.
        Returns False, leaving the store untouched, when the id is not held.
        """
        for index, item in enumerate(self._items):
            if item.id == updated.id:
                self._items[index] = item.model_copy(update=updated.model_dump())
                return True
        logger.warning(f"Update for {updated.id} ignored: not in the local store")
        return False

    def remove(self, entity_id: str) -> bool:
        """Drop the row with entity_id; False when it was not held."""
        for index, item in enumerate(self._items):
            if item.id == entity_id:
                del self._items[index]
                return True
        logger.warning(f"Delete of {entity_id} ignored: not in the local store")
        return False
