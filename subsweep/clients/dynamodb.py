"""
DynamoDB record store for credentials, rate-limit windows and history.

Atomic updates use conditional writes on a hidden version attribute since
DynamoDB has no multi-statement read-modify-write transaction for a single
item.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from subsweep.clients.record_store import Item, Mutation, T
from subsweep.core.config import StorageSettings
from subsweep.core.errors import ConfigurationError, StoreConflictError

logger = logging.getLogger(__name__)

VERSION_ATTRIBUTE = "_version"
_CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


class DynamoDBClient:
    """CRUD and compare-and-swap operations over a single pk/sk table."""

    def __init__(
        self,
        settings: StorageSettings,
        *,
        table: Any = None,
        max_attempts: int = 8,
    ) -> None:
        self._settings = settings
        self._max_attempts = max_attempts
        if table is not None:
            self._table = table
            return
        if not settings.dynamodb_table_name:
            raise ConfigurationError("DYNAMODB_TABLE_NAME must be set for the dynamodb backend.")
        resource = boto3.resource("dynamodb", region_name=settings.region_name)
        self._table = resource.Table(settings.dynamodb_table_name)

    def put_item(self, item: Item) -> None:
        """Put an item in the DynamoDB table."""
        self._table.put_item(Item=item)

    def get_item(
        self, *, partition_key: str, sort_key: str, consistent: bool = True
    ) -> Optional[Item]:
        """Retrieve an item using its key."""
        response = self._table.get_item(
            Key={"pk": partition_key, "sk": sort_key},
            ConsistentRead=consistent,
        )
        return response.get("Item")

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        self._table.delete_item(Key={"pk": partition_key, "sk": sort_key})

    def list_items_with_prefix(
        self, *, partition_key: str, sort_key_prefix: str
    ) -> list[Item]:
        """Query items that share a partition key and a sort key prefix, in sk order."""
        items: list[Item] = []
        query_kwargs: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(partition_key)
            & Key("sk").begins_with(sort_key_prefix),
            "ConsistentRead": True,
        }
        while True:
            response = self._table.query(**query_kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            query_kwargs["ExclusiveStartKey"] = last_key

    def transact_item(
        self, *, partition_key: str, sort_key: str, mutation: Mutation[T]
    ) -> T:
        """
        Atomically read, transform and write a single item.

        The write is conditioned on the version observed by the read; when a
        concurrent writer wins, the read and the mutation are replayed.
        """
        for attempt in range(1, self._max_attempts + 1):
            current = self.get_item(partition_key=partition_key, sort_key=sort_key)
            updated, result = mutation(copy.deepcopy(current) if current else None)
            if updated is None:
                return result

            if current is None:
                expected_version = 0
                condition = Attr("pk").not_exists()
            else:
                expected_version = int(current.get(VERSION_ATTRIBUTE, 0))
                if VERSION_ATTRIBUTE in current:
                    condition = Attr(VERSION_ATTRIBUTE).eq(expected_version)
                else:
                    condition = Attr(VERSION_ATTRIBUTE).not_exists()

            item = {
                **updated,
                "pk": partition_key,
                "sk": sort_key,
                VERSION_ATTRIBUTE: expected_version + 1,
            }
            try:
                self._table.put_item(Item=item, ConditionExpression=condition)
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") != _CONDITIONAL_CHECK_FAILED:
                    raise
                logger.debug(
                    "Conditional write lost on %s/%s (attempt %s)",
                    partition_key,
                    sort_key,
                    attempt,
                )
                continue
            return result

        raise StoreConflictError(
            f"Gave up updating {partition_key}/{sort_key} after {self._max_attempts} attempts."
        )


__all__ = ["DynamoDBClient", "VERSION_ATTRIBUTE"]
