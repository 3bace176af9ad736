"""DynamoDB-backed document store.

Uses the low-level boto3 client so that every payload crosses the wire
through ``studyhub.store.codec``. Conditions and updates are rendered into
expression syntax with placeholder names, so reserved words such as
``status`` and ``data`` need no special handling. botocore failures are
classified into ``studyhub.errors`` kinds before they leave this module.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from studyhub.cancellation import check_cancelled
from studyhub.errors import (
    ConditionFailedError,
    InternalError,
    StudyhubError,
    UnavailableError,
)
from studyhub.store.base import DocumentStore, Increment, Item, Query
from studyhub.store.codec import decode_item, encode, encode_item
from studyhub.store.conditions import ExpressionBuilder
from studyhub.store.keys import ItemKey

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.config.store import StoreConfig
    from studyhub.store.conditions import Condition

logger = logging.getLogger(__name__)

THROTTLING_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
        "ThrottlingException",
        "Throttling",
        "LimitExceededException",
        "TooManyRequestsException",
    }
)
TRANSIENT_CODES = frozenset({"InternalServerError", "ServiceUnavailable"})
CONFIGURATION_CODES = frozenset({"ValidationException", "ResourceNotFoundException"})


def translate_client_error(exc: ClientError) -> StudyhubError:
    """Classify a botocore ``ClientError`` into a studyhub failure kind.

    Parameters
    ----------
    exc : ClientError
        Error raised by the DynamoDB client.

    Returns
    -------
    StudyhubError
        ``ConditionFailedError`` for failed conditional writes,
        ``InternalError`` for malformed requests or missing tables, and
        ``UnavailableError`` for throttling and everything else the service
        reports.
    """
    error = exc.response.get("Error", {})
    code = error.get("Code", "")
    message = error.get("Message", "") or str(exc)
    if code == "ConditionalCheckFailedException":
        return ConditionFailedError()
    if code in THROTTLING_CODES:
        return UnavailableError(f"Store is throttling requests: {message}", code=code)
    if code in TRANSIENT_CODES:
        return UnavailableError(f"Store temporarily unavailable: {message}", code=code)
    if code in CONFIGURATION_CODES:
        return InternalError(f"Store rejected request ({code}): {message}")
    return UnavailableError(f"Store error ({code or 'unknown'}): {message}", code=code)


class DynamoDBDocumentStore(DocumentStore):
    """``DocumentStore`` over a DynamoDB table per collection.

    Parameters
    ----------
    client : Any | None
        Pre-built ``boto3`` DynamoDB client. When None, one is created from
        the remaining arguments.
    region_name : str | None
        AWS region.
    endpoint_url : str | None
        Endpoint override, e.g. ``http://localhost:8000`` for DynamoDB Local.
    max_attempts : int
        Total attempts per call, including botocore's own retries.
    retry_mode : str
        botocore retry mode ("standard", "adaptive" or "legacy").
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        max_attempts: int = 5,
        retry_mode: str = "standard",
    ) -> None:
        if client is None:
            client = boto3.client(
                "dynamodb",
                region_name=region_name,
                endpoint_url=endpoint_url,
                config=Config(
                    retries={"max_attempts": max_attempts, "mode": retry_mode}
                ),
            )
        self._client = client

    @classmethod
    def from_config(cls, config: StoreConfig) -> DynamoDBDocumentStore:
        """Create a store from the ``store`` configuration section."""
        return cls(
            region_name=config.region,
            endpoint_url=config.endpoint_url,
            max_attempts=config.max_attempts,
            retry_mode=config.retry_mode,
        )

    def _call(
        self, operation: str, cancel: CancellationToken | None, **kwargs: Any
    ) -> dict[str, Any]:
        check_cancelled(cancel)
        try:
            response: dict[str, Any] = getattr(self._client, operation)(**kwargs)
        except ClientError as e:
            translated = translate_client_error(e)
            if not isinstance(translated, ConditionFailedError):
                logger.warning(
                    f"{operation} on {kwargs.get('TableName')} failed: {translated}"
                )
            raise translated from e
        except BotoCoreError as e:
            logger.warning(f"{operation} on {kwargs.get('TableName')} failed: {e}")
            raise UnavailableError(f"Store unreachable: {e}") from e
        return response

    @staticmethod
    def _attach(
        request: dict[str, Any], builder: ExpressionBuilder
    ) -> dict[str, Any]:
        if builder.names:
            request["ExpressionAttributeNames"] = builder.names
        if builder.values:
            request["ExpressionAttributeValues"] = {
                placeholder: encode(value)
                for placeholder, value in builder.values.items()
            }
        return request

    def get_item(
        self,
        table: str,
        key: ItemKey,
        *,
        consistent: bool = False,
        cancel: CancellationToken | None = None,
    ) -> Item | None:
        response = self._call(
            "get_item",
            cancel,
            TableName=table,
            Key=encode_item(key.as_dict()),
            ConsistentRead=consistent,
        )
        check_cancelled(cancel)
        item = response.get("Item")
        return decode_item(item) if item else None

    def put_item(
        self,
        table: str,
        item: Item,
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        request: dict[str, Any] = {"TableName": table, "Item": encode_item(item)}
        if condition is not None:
            builder = ExpressionBuilder()
            request["ConditionExpression"] = builder.render(condition)
            self._attach(request, builder)
        self._call("put_item", cancel, **request)

    def update_item(
        self,
        table: str,
        key: ItemKey,
        updates: dict[str, Any],
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> Item:
        builder = ExpressionBuilder()
        clauses: list[str] = []
        for path, value in updates.items():
            name = builder.name(path)
            if isinstance(value, Increment):
                zero = builder.value(0)
                amount = builder.value(value.amount)
                clauses.append(f"{name} = if_not_exists({name}, {zero}) + {amount}")
            else:
                clauses.append(f"{name} = {builder.value(value)}")
        request: dict[str, Any] = {
            "TableName": table,
            "Key": encode_item(key.as_dict()),
            "UpdateExpression": "SET " + ", ".join(clauses),
            "ReturnValues": "ALL_NEW",
        }
        if condition is not None:
            request["ConditionExpression"] = builder.render(condition)
        response = self._call("update_item", cancel, **self._attach(request, builder))
        return decode_item(response.get("Attributes", {}))

    def delete_item(
        self,
        table: str,
        key: ItemKey,
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        request: dict[str, Any] = {"TableName": table, "Key": encode_item(key.as_dict())}
        if condition is not None:
            builder = ExpressionBuilder()
            request["ConditionExpression"] = builder.render(condition)
            self._attach(request, builder)
        self._call("delete_item", cancel, **request)

    def query(
        self,
        table: str,
        query: Query,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[Item]:
        builder = ExpressionBuilder()
        key_condition = (
            f"{builder.name(query.partition_attr)} = "
            f"{builder.value(query.partition_value)}"
        )
        if query.sort_op == "begins_with":
            key_condition += (
                f" AND begins_with({builder.name(query.sort_attr)}, "
                f"{builder.value(query.sort_value or '')})"
            )
        elif query.sort_op == "gt":
            key_condition += (
                f" AND {builder.name(query.sort_attr)} > "
                f"{builder.value(query.sort_value or '')}"
            )
        request: dict[str, Any] = {
            "TableName": table,
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": query.forward,
        }
        if query.index is not None:
            request["IndexName"] = query.index.name
        elif query.consistent:
            request["ConsistentRead"] = True
        if query.projection is not None:
            request["ProjectionExpression"] = ", ".join(
                builder.name(path) for path in query.projection
            )
        self._attach(request, builder)

        items: list[Item] = []
        while True:
            if query.limit is not None:
                request["Limit"] = query.limit - len(items)
            response = self._call("query", cancel, **request)
            check_cancelled(cancel)
            items.extend(decode_item(raw) for raw in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key or (query.limit is not None and len(items) >= query.limit):
                break
            request["ExclusiveStartKey"] = last_key
        return items
