# missiondir/store_dynamodb.py
from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from missiondir.errors import StoreError
from missiondir.models import MissionRecord
from missiondir.store import observe_call

log = logging.getLogger("missiondir.store.dynamodb")


class DynamoMissionStore:
    """
    Missions as DynamoDB items keyed by a single string attribute.

    Item layout: {<primary_key>: S, Name: S, Description: S}.
    """

    def __init__(self, client: Any, *, table_name: str, primary_key: str) -> None:
        self.client = client
        self.table_name = table_name
        self.primary_key = primary_key

    @classmethod
    def from_settings(cls, settings) -> "DynamoMissionStore":
        kwargs: dict[str, Any] = {
            # retries are the client's business, not ours
            "config": Config(retries={"max_attempts": 1, "mode": "standard"}),
        }
        if settings.dynamodb_region:
            kwargs["region_name"] = settings.dynamodb_region
        client = boto3.client("dynamodb", **kwargs)
        return cls(client, table_name=settings.table_name, primary_key=settings.primary_key)

    def _key(self, mission_id: str) -> dict:
        return {self.primary_key: {"S": mission_id}}

    def put(self, record: MissionRecord) -> None:
        item = {
            **self._key(record.id),
            "Name": {"S": record.name},
            "Description": {"S": record.description},
        }
        with observe_call("put"):
            try:
                self.client.put_item(TableName=self.table_name, Item=item)
            except (BotoCoreError, ClientError) as exc:
                log.error("DynamoDB put_item failed id=%s: %s", record.id, exc)
                raise StoreError(f"put failed: {type(exc).__name__}") from exc

    def get(self, mission_id: str) -> Optional[MissionRecord]:
        with observe_call("get"):
            try:
                resp = self.client.get_item(
                    TableName=self.table_name,
                    Key=self._key(mission_id),
                    ConsistentRead=True,
                )
            except (BotoCoreError, ClientError) as exc:
                log.error("DynamoDB get_item failed id=%s: %s", mission_id, exc)
                raise StoreError(f"get failed: {type(exc).__name__}") from exc

        item = resp.get("Item")
        if not item:
            return None
        try:
            return MissionRecord(
                id=item[self.primary_key]["S"],
                name=item["Name"]["S"],
                description=item["Description"]["S"],
            )
        except (KeyError, TypeError) as exc:
            log.error("DynamoDB item malformed id=%s keys=%s", mission_id, sorted(item))
            raise StoreError("malformed item") from exc

    def ping(self) -> None:
        try:
            self.client.describe_table(TableName=self.table_name)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"ping failed: {type(exc).__name__}") from exc
