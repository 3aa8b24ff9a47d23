from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from ordercloud_export.constants import EntityKinds
from ordercloud_export.identifiers import ENTITY_ID_PREFIX, entity_id
from ordercloud_export.models import (
    Catalog,
    Category,
    Customer,
    InventoryInformation,
    InventorySet,
    SellableItem,
    Shop,
)

logger = logging.getLogger(__name__)


@dataclass
class EntityList:
    """One page of a source list."""

    entity_ids: List[str] = field(default_factory=list)
    total_count: int = 0


class SourceRepository(Protocol):
    """Lookups into the source commerce platform."""

    def find_entity(self, kind: str, entity_id: str) -> Optional[Any]:
        ...

    def find_entities_in_list(self, kind: str, list_name: str, skip: int, take: int) -> EntityList:
        ...


_LOADERS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    EntityKinds.SHOP: Shop.from_dict,
    EntityKinds.CUSTOMER: Customer.from_dict,
    EntityKinds.CATALOG: Catalog.from_dict,
    EntityKinds.CATEGORY: Category.from_dict,
    EntityKinds.SELLABLE_ITEM: SellableItem.from_dict,
    EntityKinds.INVENTORY_SET: InventorySet.from_dict,
    EntityKinds.INVENTORY_INFORMATION: InventoryInformation.from_dict,
}


def _friendly_id(kind: str, entity: Any) -> str:
    if kind in (EntityKinds.SHOP, EntityKinds.CATALOG):
        return entity.name
    return entity.friendly_id


def normalize_entity_id(kind: str, value: str) -> str:
    if value.startswith(ENTITY_ID_PREFIX):
        return value
    return entity_id(kind, value)


class JsonSourceRepository:
    """
    Source repository backed by a snapshot:

        {"entities": {"Category": [{...}], ...},
         "lists": {"Categories": ["Entity-Category-Catalog1-Shoes"], ...}}

    Entities are addressed by "Entity-{Kind}-{FriendlyId}"; a bare friendly
    id (or shop/catalog name) is accepted too.
    """

    def __init__(
        self,
        entities: Optional[Dict[str, List[Any]]] = None,
        lists: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self._entities: Dict[str, Dict[str, Any]] = {}
        self._lists: Dict[str, List[str]] = {name: list(ids) for name, ids in (lists or {}).items()}
        for kind, items in (entities or {}).items():
            for item in items:
                self.add(kind, item)

    def add(self, kind: str, entity: Any) -> None:
        if isinstance(entity, dict):
            loader = _LOADERS.get(kind)
            if loader is None:
                raise ValueError(f"Unknown source entity kind: {kind!r}")
            entity = loader(entity)
        key = entity_id(kind, _friendly_id(kind, entity))
        self._entities.setdefault(kind, {})[key] = entity

    def add_to_list(self, list_name: str, *entity_ids: str) -> None:
        self._lists.setdefault(list_name, []).extend(entity_ids)

    @classmethod
    def from_snapshot(cls, snapshot: Dict[str, Any]) -> "JsonSourceRepository":
        return cls(entities=snapshot.get("entities"), lists=snapshot.get("lists"))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "JsonSourceRepository":
        with open(path, "r", encoding="utf-8") as f:
            snapshot = json.load(f)
        repo = cls.from_snapshot(snapshot)
        logger.info(
            "Loaded source snapshot %s: %s",
            path,
            ", ".join(f"{k}={len(v)}" for k, v in repo._entities.items()) or "empty",
        )
        return repo

    def find_entity(self, kind: str, entity_id: str) -> Optional[Any]:
        if not entity_id:
            return None
        return self._entities.get(kind, {}).get(normalize_entity_id(kind, entity_id))

    def find_entities_in_list(self, kind: str, list_name: str, skip: int, take: int) -> EntityList:
        ids = self._lists.get(list_name, [])
        return EntityList(entity_ids=ids[skip:skip + take], total_count=len(ids))


def iter_list_ids(
    source: SourceRepository, kind: str, list_name: str, page_size: int = 100
) -> List[str]:
    """All entity ids on a source list, paging with skip/take."""
    ids: List[str] = []
    skip = 0
    while True:
        page = source.find_entities_in_list(kind, list_name, skip, page_size)
        ids.extend(page.entity_ids)
        skip += page_size
        if not page.entity_ids or skip >= page.total_count:
            break
    return ids
