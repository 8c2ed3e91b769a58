"""Interface shared by the SQLite and DynamoDB record stores."""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, Tuple, TypeVar

T = TypeVar("T")

Item = Dict[str, Any]
Mutation = Callable[[Optional[Item]], Tuple[Optional[Item], T]]


class RecordStore(Protocol):
    """Point reads/writes, prefix queries and single-item atomic updates."""

    def put_item(self, item: Item) -> None: ...

    def get_item(self, *, partition_key: str, sort_key: str) -> Optional[Item]: ...

    def delete_item(self, *, partition_key: str, sort_key: str) -> None: ...

    def list_items_with_prefix(
        self, *, partition_key: str, sort_key_prefix: str
    ) -> list[Item]: ...

    def transact_item(
        self, *, partition_key: str, sort_key: str, mutation: Mutation[T]
    ) -> T: ...


__all__ = ["Item", "Mutation", "RecordStore", "T"]
