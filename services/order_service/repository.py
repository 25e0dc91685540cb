import time
from typing import Callable, List, Optional

import structlog
from botocore.exceptions import ClientError

from shared.config.database import StoreConnection
from .models import ORDERS_TABLE, USER_ID_INDEX, order_table_name
from .schemas import Order, OrderCreate, from_epoch_seconds, from_item, to_item

logger = structlog.get_logger(__name__)

HASH_KEY = ORDERS_TABLE.hash_key


class OrderRepository:
    def __init__(self, connection: StoreConnection, clock: Callable[[], float] = time.time):
        self.client = connection.client
        self.table_name = order_table_name(connection.settings)
        self.clock = clock

    def _key(self, order_id: str) -> dict:
        return {HASH_KEY: {"S": order_id}}

    async def create(self, order: OrderCreate) -> Order:
        now = from_epoch_seconds(self.clock())
        fields = order.model_dump(include=set(OrderCreate.model_fields))
        created = Order(**fields, created_at=now, updated_at=now)
        logger.debug("order_create", table=self.table_name, order_id=created.order_id)
        await self.client.put_item(
            TableName=self.table_name,
            Item=to_item(created),
            ConditionExpression=f"attribute_not_exists({HASH_KEY})",
        )
        return created

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        logger.debug("order_get", table=self.table_name, order_id=order_id)
        result = await self.client.get_item(TableName=self.table_name, Key=self._key(order_id))
        item = result.get("Item")
        return from_item(item) if item else None

    async def get_by_user_id(self, user_id: str) -> List[Order]:
        # First page only
        index = ORDERS_TABLE.index(USER_ID_INDEX)
        logger.debug("order_query", table=self.table_name, index=index.name, user_id=user_id)
        result = await self.client.query(
            TableName=self.table_name,
            IndexName=index.name,
            KeyConditionExpression=f"{index.hash_key} = :userId",
            ExpressionAttributeValues={":userId": {"S": user_id}},
        )
        return [from_item(item) for item in result.get("Items", [])]

    async def update_status(self, order_id: str, status: str) -> Optional[Order]:
        updated_at = int(self.clock())
        logger.debug("order_update_status", table=self.table_name, order_id=order_id, status=status)
        try:
            result = await self.client.update_item(
                TableName=self.table_name,
                Key=self._key(order_id),
                UpdateExpression="SET #status = :status, updatedAt = :updatedAt",
                ConditionExpression=f"attribute_exists({HASH_KEY})",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":status": {"S": status},
                    ":updatedAt": {"N": str(updated_at)},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            # Failed condition means the order does not exist
            if exc.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise
        return from_item(result["Attributes"])

    async def delete(self, order_id: str) -> None:
        logger.debug("order_delete", table=self.table_name, order_id=order_id)
        await self.client.delete_item(TableName=self.table_name, Key=self._key(order_id))
