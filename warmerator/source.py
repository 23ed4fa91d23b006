"""Source of truth for design records: a DynamoDB table read by paginated scan."""

import asyncio
import json
from decimal import Decimal
from typing import NamedTuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import classify_source_error
from .json_encoder import dumps
from .records import RECORD_ID_FIELD


class ScanPage(NamedTuple):
    items: list
    last_key: dict | None


class DesignSource:
    """Interface of the paginated record store."""

    async def scan_page(self, limit: int, start_key: dict | None = None) -> ScanPage:
        raise NotImplementedError

    async def put(self, record: dict) -> None:
        raise NotImplementedError

    async def update(self, uid: str, fields: dict) -> dict:
        raise NotImplementedError

    async def delete(self, uid: str) -> None:
        raise NotImplementedError


def to_dynamodb(value):
    """Round-trip through JSON so floats become Decimal, which boto3 requires."""
    return json.loads(dumps(value), parse_float=Decimal)


def build_update(fields: dict) -> dict:
    """UpdateExpression arguments setting every field in ``fields``."""
    names = {}
    values = {}
    assignments = []
    for i, (name, value) in enumerate(fields.items()):
        names[f"#f{i}"] = name
        values[f":v{i}"] = value
        assignments.append(f"#f{i} = :v{i}")
    return {
        "UpdateExpression": "SET " + ", ".join(assignments),
        "ExpressionAttributeNames": names,
        "ExpressionAttributeValues": to_dynamodb(values),
    }


class DynamoDBDesignSource(DesignSource):
    """DynamoDB table accessed through boto3; blocking calls run in a worker thread."""

    def __init__(self, table_name: str, region_name: str = None, table=None):
        self.table_name = table_name
        self._table = table or boto3.resource("dynamodb", region_name=region_name).Table(table_name)

    def __repr__(self):
        return f"DynamoDBDesignSource({self.table_name!r})"

    async def _call(self, method, **kwargs):
        try:
            return await asyncio.to_thread(method, **kwargs)
        except (BotoCoreError, ClientError) as e:
            classified = classify_source_error(e)
            if classified is e:
                raise
            raise classified from e

    async def scan_page(self, limit: int, start_key: dict | None = None) -> ScanPage:
        kwargs = {"Limit": limit}
        if start_key:
            kwargs["ExclusiveStartKey"] = to_dynamodb(start_key)
        response = await self._call(self._table.scan, **kwargs)
        return ScanPage(response.get("Items", []), response.get("LastEvaluatedKey"))

    async def put(self, record: dict) -> None:
        await self._call(self._table.put_item, Item=to_dynamodb(record))

    async def update(self, uid: str, fields: dict) -> dict:
        response = await self._call(
            self._table.update_item,
            Key={RECORD_ID_FIELD: uid},
            ReturnValues="ALL_NEW",
            **build_update(fields),
        )
        return response.get("Attributes", {})

    async def delete(self, uid: str) -> None:
        await self._call(self._table.delete_item, Key={RECORD_ID_FIELD: uid})
