"""Catalog interface: deployed track entries and the collections they belong to."""

from __future__ import annotations

from typing import Protocol

from trackgen.schemas.models import CatalogEntry, Collection


class Catalog(Protocol):
    def get(self, entry_id: str) -> CatalogEntry | None: ...
    def find_by_asset_fingerprint(self, fingerprint: str) -> CatalogEntry | None: ...
    def create(self, entry: CatalogEntry) -> CatalogEntry: ...
    def update(self, entry_id: str, **fields) -> CatalogEntry: ...
    def list_entries(self) -> list[CatalogEntry]: ...

    def create_collection(self, name: str, is_public: bool = True) -> Collection: ...
    def get_collections(self, ids: list[str]) -> list[Collection]: ...
    def is_member(self, collection_id: str, entry_id: str) -> bool: ...
    def max_position(self, collection_id: str) -> int | None: ...
    def append_to_collection(self, collection_id: str, entry_id: str, position: int) -> None: ...
    def collection_entries(self, collection_id: str) -> list[tuple[str, int]]: ...
