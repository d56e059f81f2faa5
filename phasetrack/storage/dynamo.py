from collections.abc import Sequence
from decimal import Decimal
import json
import logging

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from phasetrack.exceptions import (
    ConcurrentUpdateError,
    DuplicateUserError,
    PersistenceError,
)
from phasetrack.models.user import ResponseRecord, UserProgressState
from phasetrack.storage.base import StorageBackend

logger = logging.getLogger(__name__)

# DynamoDB caps a transaction at 100 items; one is the progress record
MAX_RESPONSES_PER_COMMIT = 99


def _convert_floats(obj):
    """Recursively convert floats to Decimal for DynamoDB."""
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_floats(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_floats(i) for i in obj]
    return obj


def _convert_decimals(obj):
    """Recursively convert Decimals back to float/int."""
    if isinstance(obj, Decimal):
        if obj == int(obj):
            return int(obj)
        return float(obj)
    if isinstance(obj, dict):
        return {k: _convert_decimals(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_decimals(i) for i in obj]
    return obj


_TABLE_DEFS = {
    "Progress": {"pk": "user_id"},
    "Responses": {"pk": "user_id", "sk": "sort_key"},
}


class DynamoStorage(StorageBackend):
    def __init__(
        self,
        endpoint_url: str | None = "http://localhost:8000",
        region: str = "us-east-1",
        table_prefix: str = "",
        create_tables: bool = True,
    ):
        kwargs = {"region_name": region}
        if endpoint_url:
            # DynamoDB Local accepts any static credentials
            kwargs.update(
                endpoint_url=endpoint_url,
                aws_access_key_id="local",
                aws_secret_access_key="local",
            )
        self._resource = boto3.resource("dynamodb", **kwargs)
        # Low-level client; transactions are built with typed attribute values
        self._client = boto3.client("dynamodb", **kwargs)
        self._serializer = TypeSerializer()
        self._prefix = table_prefix
        if create_tables:
            self._ensure_tables()

    def _name(self, table: str) -> str:
        return f"{self._prefix}{table}"

    def _ensure_tables(self):
        existing = {t.name for t in self._resource.tables.all()}
        for table, keys in _TABLE_DEFS.items():
            table_name = self._name(table)
            if table_name in existing:
                continue
            key_schema = [{"AttributeName": keys["pk"], "KeyType": "HASH"}]
            attr_defs = [{"AttributeName": keys["pk"], "AttributeType": "S"}]
            if "sk" in keys:
                key_schema.append({"AttributeName": keys["sk"], "KeyType": "RANGE"})
                attr_defs.append({"AttributeName": keys["sk"], "AttributeType": "S"})
            logger.info("Creating DynamoDB table %s", table_name)
            self._resource.create_table(
                TableName=table_name,
                KeySchema=key_schema,
                AttributeDefinitions=attr_defs,
                BillingMode="PAY_PER_REQUEST",
            )

    def _table(self, name: str):
        return self._resource.Table(self._name(name))

    def _to_item(self, model) -> dict:
        data = json.loads(model.model_dump_json())
        return _convert_floats(data)

    def _response_item(self, record: ResponseRecord) -> dict:
        item = self._to_item(record)
        item["sort_key"] = record.sort_key
        return item

    def _serialize(self, item: dict) -> dict:
        return {k: self._serializer.serialize(v) for k, v in item.items()}

    def _scan(self, table_name: str) -> list[dict]:
        table = self._table(table_name)
        items: list[dict] = []
        kwargs: dict = {}
        while True:
            resp = table.scan(**kwargs)
            items.extend(resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                return items
            kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

    def _query_responses(self, user_id: str) -> list[dict]:
        table = self._table("Responses")
        items: list[dict] = []
        kwargs: dict = {"KeyConditionExpression": Key("user_id").eq(user_id)}
        while True:
            resp = table.query(**kwargs)
            items.extend(resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                return items
            kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

    # --- Progress ---

    def get_progress(self, user_id: str) -> UserProgressState | None:
        try:
            resp = self._table("Progress").get_item(Key={"user_id": user_id}, ConsistentRead=True)
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to read progress for {user_id}: {e}", user_id) from e
        item = resp.get("Item")
        return UserProgressState.model_validate(_convert_decimals(item)) if item else None

    def create_progress(self, state: UserProgressState) -> None:
        try:
            self._table("Progress").put_item(
                Item=self._to_item(state),
                ConditionExpression="attribute_not_exists(user_id)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise DuplicateUserError(state.user_id) from e
            raise PersistenceError(f"Failed to create {state.user_id}: {e}", state.user_id) from e
        except BotoCoreError as e:
            raise PersistenceError(f"Failed to create {state.user_id}: {e}", state.user_id) from e

    def commit_progress(
        self,
        state: UserProgressState,
        expected_version: int,
        responses: Sequence[ResponseRecord] = (),
    ) -> UserProgressState:
        if len(responses) > MAX_RESPONSES_PER_COMMIT:
            raise PersistenceError(
                f"Cannot commit {len(responses)} responses at once (max {MAX_RESPONSES_PER_COMMIT})",
                state.user_id,
            )

        stored = state.model_copy(update={"version": expected_version + 1})
        transact_items = [
            {
                "Put": {
                    "TableName": self._name("Progress"),
                    "Item": self._serialize(self._to_item(stored)),
                    "ConditionExpression": "attribute_exists(user_id) AND #v = :expected",
                    "ExpressionAttributeNames": {"#v": "version"},
                    "ExpressionAttributeValues": {":expected": {"N": str(expected_version)}},
                }
            }
        ]
        for record in responses:
            transact_items.append(
                {
                    "Put": {
                        "TableName": self._name("Responses"),
                        "Item": self._serialize(self._response_item(record)),
                    }
                }
            )

        try:
            self._client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            reasons = e.response.get("CancellationReasons") or []
            if reasons and reasons[0].get("Code") == "ConditionalCheckFailed":
                raise ConcurrentUpdateError(state.user_id, expected_version) from e
            raise PersistenceError(
                f"Failed to commit progress for {state.user_id}: {e}", state.user_id
            ) from e
        except BotoCoreError as e:
            raise PersistenceError(
                f"Failed to commit progress for {state.user_id}: {e}", state.user_id
            ) from e
        return stored

    def list_progress(self) -> list[UserProgressState]:
        try:
            items = self._scan("Progress")
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to list progress: {e}") from e
        return [UserProgressState.model_validate(_convert_decimals(i)) for i in items]

    def delete_user(self, user_id: str) -> bool:
        try:
            existing = self._table("Progress").get_item(Key={"user_id": user_id}).get("Item")
            if existing is None:
                return False
            responses = self._query_responses(user_id)
            with self._table("Responses").batch_writer() as batch:
                for item in responses:
                    batch.delete_item(Key={"user_id": user_id, "sort_key": item["sort_key"]})
            self._table("Progress").delete_item(Key={"user_id": user_id})
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to delete {user_id}: {e}", user_id) from e
        logger.info("Deleted user %s and %d responses", user_id, len(responses))
        return True

    # --- Responses ---

    def list_responses(self, user_id: str | None = None) -> list[ResponseRecord]:
        try:
            items = self._query_responses(user_id) if user_id else self._scan("Responses")
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to list responses: {e}", user_id) from e
        records = []
        for item in items:
            data = _convert_decimals(item)
            data.pop("sort_key", None)
            records.append(ResponseRecord.model_validate(data))
        return sorted(records, key=lambda r: (r.user_id, r.sort_key))
