"""Tests for the DynamoDB document store against a mocked client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from pytest_mock import MockerFixture

from studyhub.cancellation import CancellationToken
from studyhub.config.store import StoreConfig
from studyhub.errors import (
    ConditionFailedError,
    InternalError,
    OperationCancelledError,
    UnavailableError,
)
from studyhub.store.base import Increment, Query
from studyhub.store.conditions import Equals, exists_item, not_exists_item
from studyhub.store.dynamodb import DynamoDBDocumentStore, translate_client_error
from studyhub.store.keys import GSI1, ItemKey

TABLE = "experiments"


def _client_error(code: str, operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} happened"}}, operation)


@pytest.fixture
def client() -> MagicMock:
    """Provide a mocked low-level DynamoDB client."""
    return MagicMock()


@pytest.fixture
def store(client: MagicMock) -> DynamoDBDocumentStore:
    """Provide a store over the mocked client."""
    return DynamoDBDocumentStore(client)


class TestTranslateClientError:
    """Tests for botocore error classification."""

    def test_condition_failure(self) -> None:
        """Test failed conditions keep their own type."""
        error = translate_client_error(_client_error("ConditionalCheckFailedException"))
        assert isinstance(error, ConditionFailedError)

    @pytest.mark.parametrize(
        "code",
        [
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
            "InternalServerError",
            "ServiceUnavailable",
        ],
    )
    def test_retryable_codes(self, code: str) -> None:
        """Test throttling and transient faults are retryable."""
        error = translate_client_error(_client_error(code))
        assert isinstance(error, UnavailableError)
        assert error.retryable is True
        assert error.code == code

    def test_missing_table_is_internal(self) -> None:
        """Test deployment errors are not retried."""
        error = translate_client_error(_client_error("ResourceNotFoundException"))
        assert isinstance(error, InternalError)
        assert error.retryable is False


class TestRequests:
    """Tests for the requests sent to the client."""

    def test_get_item(self, store: DynamoDBDocumentStore, client: MagicMock) -> None:
        """Test a consistent point read and decoding."""
        client.get_item.return_value = {
            "Item": {"PK": {"S": "EXPERIMENT#E1"}, "n": {"N": "3"}}
        }
        item = store.get_item(TABLE, ItemKey("EXPERIMENT#E1", "METADATA"), consistent=True)
        assert item == {"PK": "EXPERIMENT#E1", "n": 3}
        client.get_item.assert_called_once_with(
            TableName=TABLE,
            Key={"PK": {"S": "EXPERIMENT#E1"}, "SK": {"S": "METADATA"}},
            ConsistentRead=True,
        )

    def test_get_missing_item(self, store: DynamoDBDocumentStore, client: MagicMock) -> None:
        """Test an empty response reads as None."""
        client.get_item.return_value = {}
        assert store.get_item(TABLE, ItemKey("A", "B")) is None

    def test_conditional_put(self, store: DynamoDBDocumentStore, client: MagicMock) -> None:
        """Test a create-if-absent put."""
        store.put_item(TABLE, {"PK": "A", "SK": "B", "v": 1.5}, condition=not_exists_item())
        kwargs = client.put_item.call_args.kwargs
        assert kwargs["Item"] == {"PK": {"S": "A"}, "SK": {"S": "B"}, "v": {"N": "1.5"}}
        assert kwargs["ConditionExpression"] == (
            "attribute_not_exists(#n0) AND attribute_not_exists(#n1)"
        )
        assert kwargs["ExpressionAttributeNames"] == {"#n0": "PK", "#n1": "SK"}
        assert "ExpressionAttributeValues" not in kwargs

    def test_update_with_increment(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test SET clauses, increments, and the shared placeholder space."""
        client.update_item.return_value = {"Attributes": {"status": {"S": "Active"}}}
        result = store.update_item(
            TABLE,
            ItemKey("A", "B"),
            {"status": "Active", "meta.version": Increment(1)},
            condition=Equals("status", "Draft"),
        )
        assert result == {"status": "Active"}
        kwargs = client.update_item.call_args.kwargs
        assert kwargs["UpdateExpression"] == (
            "SET #n0 = :v0, #n1.#n2 = if_not_exists(#n1.#n2, :v1) + :v2"
        )
        assert kwargs["ConditionExpression"] == "#n0 = :v3"
        assert kwargs["ExpressionAttributeValues"] == {
            ":v0": {"S": "Active"},
            ":v1": {"N": "0"},
            ":v2": {"N": "1"},
            ":v3": {"S": "Draft"},
        }
        assert kwargs["ReturnValues"] == "ALL_NEW"

    def test_conditional_delete(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test delete-if-exists."""
        store.delete_item(TABLE, ItemKey("A", "B"), condition=exists_item())
        kwargs = client.delete_item.call_args.kwargs
        assert kwargs["ConditionExpression"] == (
            "attribute_exists(#n0) AND attribute_exists(#n1)"
        )

    def test_query_follows_pages(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test pagination through LastEvaluatedKey."""
        client.query.side_effect = [
            {"Items": [{"PK": {"S": "1"}}], "LastEvaluatedKey": {"PK": {"S": "1"}}},
            {"Items": [{"PK": {"S": "2"}}]},
        ]
        items = store.query(
            TABLE,
            Query(
                partition_value="EXPERIMENT",
                index=GSI1,
                forward=False,
                projection=("PK", "data.name"),
            ),
        )
        assert items == [{"PK": "1"}, {"PK": "2"}]
        first = client.query.call_args_list[0].kwargs
        second = client.query.call_args_list[1].kwargs
        assert first["IndexName"] == "GSI1"
        assert first["ScanIndexForward"] is False
        assert first["KeyConditionExpression"] == "#n0 = :v0"
        assert first["ProjectionExpression"] == "#n1, #n2.#n3"
        assert second["ExclusiveStartKey"] == {"PK": {"S": "1"}}

    def test_query_begins_with(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test the sort-key prefix predicate."""
        client.query.return_value = {"Items": []}
        store.query(
            TABLE,
            Query(partition_value="EXPERIMENT#E1", sort_op="begins_with", sort_value="MEMBER#"),
        )
        kwargs = client.query.call_args.kwargs
        assert kwargs["KeyConditionExpression"] == "#n0 = :v0 AND begins_with(#n1, :v1)"
        assert kwargs["ExpressionAttributeValues"][":v1"] == {"S": "MEMBER#"}


class TestFailures:
    """Tests for failure propagation."""

    def test_condition_failure_propagates(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test conditional failures surface as ConditionFailedError."""
        client.put_item.side_effect = _client_error("ConditionalCheckFailedException")
        with pytest.raises(ConditionFailedError):
            store.put_item(TABLE, {"PK": "A", "SK": "B"}, condition=not_exists_item())

    def test_throttling_is_unavailable(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test throttling surfaces as a retryable failure."""
        client.get_item.side_effect = _client_error(
            "ProvisionedThroughputExceededException", "GetItem"
        )
        with pytest.raises(UnavailableError):
            store.get_item(TABLE, ItemKey("A", "B"))

    def test_connection_error_is_unavailable(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test transport failures surface as retryable."""
        client.get_item.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:8000"
        )
        with pytest.raises(UnavailableError, match="unreachable"):
            store.get_item(TABLE, ItemKey("A", "B"))

    def test_cancelled_before_call(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test no request is sent after cancellation."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            store.put_item(TABLE, {"PK": "A", "SK": "B"}, cancel=token)
        client.put_item.assert_not_called()

    def test_late_read_result_is_discarded(
        self, store: DynamoDBDocumentStore, client: MagicMock
    ) -> None:
        """Test a read that returns after cancellation raises."""
        token = CancellationToken()

        def respond(**kwargs: object) -> dict[str, object]:
            token.cancel()
            return {"Item": {"PK": {"S": "A"}}}

        client.get_item.side_effect = respond
        with pytest.raises(OperationCancelledError):
            store.get_item(TABLE, ItemKey("A", "B"), cancel=token)


class TestFromConfig:
    """Tests for client construction."""

    def test_from_config_builds_client(self, mocker: MockerFixture) -> None:
        """Test region, endpoint, and retry settings reach boto3."""
        factory = mocker.patch("studyhub.store.dynamodb.boto3.client")
        DynamoDBDocumentStore.from_config(
            StoreConfig(endpoint_url="http://localhost:8000", max_attempts=3)
        )
        kwargs = factory.call_args.kwargs
        assert factory.call_args.args == ("dynamodb",)
        assert kwargs["region_name"] == "eu-west-2"
        assert kwargs["endpoint_url"] == "http://localhost:8000"
        assert kwargs["config"].retries == {"max_attempts": 3, "mode": "standard"}
