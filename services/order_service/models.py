from dataclasses import dataclass, field
from typing import List

from shared.config.database import StoreSettings


@dataclass(frozen=True)
class GlobalIndex:
    name: str
    hash_key: str


@dataclass(frozen=True)
class TableDefinition:
    entity: str
    hash_key: str
    # attribute name -> DynamoDB scalar type for every key attribute
    key_attributes: dict
    indexes: List[GlobalIndex] = field(default_factory=list)

    def table_name(self, settings: StoreSettings) -> str:
        return settings.table_name(self.entity)

    def index(self, name: str) -> GlobalIndex:
        for index in self.indexes:
            if index.name == name:
                return index
        raise KeyError(name)

    def create_table_kwargs(self, table_name: str) -> dict:
        return {
            "TableName": table_name,
            "KeySchema": [{"AttributeName": self.hash_key, "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": name, "AttributeType": attr_type}
                for name, attr_type in self.key_attributes.items()
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": index.name,
                    "KeySchema": [{"AttributeName": index.hash_key, "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
                for index in self.indexes
            ],
            "BillingMode": "PAY_PER_REQUEST",
        }


USER_ID_INDEX = "userIdIndex"

ORDERS_TABLE = TableDefinition(
    entity="orders",
    hash_key="orderId",
    key_attributes={"orderId": "S", "userId": "S"},
    indexes=[GlobalIndex(name=USER_ID_INDEX, hash_key="userId")],
)


def order_table_name(settings: StoreSettings) -> str:
    return ORDERS_TABLE.table_name(settings)
