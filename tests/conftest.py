import copy

import pytest
from botocore.exceptions import ClientError

from shared.config.database import StoreConnection, StoreSettings


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeWaiter:
    def __init__(self, client):
        self.client = client
        self.waited = []

    async def wait(self, TableName):
        self.waited.append(TableName)


class FakeDynamoClient:
    """
    In-memory stand-in for the aioboto3 DynamoDB client.
    Understands only the expressions the order repository sends.
    """

    def __init__(self):
        self.tables = {}
        self.created = []
        self.calls = []
        self.waiter = FakeWaiter(self)
        self.describe_error = None

    def _table(self, name, operation):
        if name not in self.tables:
            raise client_error("ResourceNotFoundException", operation)
        return self.tables[name]

    @staticmethod
    def _key_value(key):
        (name, value), = key.items()
        return name, value["S"]

    async def describe_table(self, TableName):
        self.calls.append(("describe_table", TableName))
        if self.describe_error:
            raise client_error(self.describe_error, "DescribeTable")
        self._table(TableName, "DescribeTable")
        return {"Table": {"TableName": TableName, "TableStatus": "ACTIVE"}}

    async def create_table(self, **kwargs):
        self.calls.append(("create_table", kwargs["TableName"]))
        self.created.append(kwargs)
        self.tables[kwargs["TableName"]] = {}
        return {"TableDescription": {"TableName": kwargs["TableName"]}}

    def get_waiter(self, name):
        assert name == "table_exists"
        return self.waiter

    async def put_item(self, TableName, Item, ConditionExpression=None):
        self.calls.append(("put_item", TableName))
        table = self._table(TableName, "PutItem")
        key = Item["orderId"]["S"]
        if ConditionExpression == "attribute_not_exists(orderId)" and key in table:
            raise client_error("ConditionalCheckFailedException", "PutItem")
        table[key] = copy.deepcopy(Item)
        return {}

    async def get_item(self, TableName, Key):
        self.calls.append(("get_item", TableName))
        table = self._table(TableName, "GetItem")
        _, value = self._key_value(Key)
        if value not in table:
            return {}
        return {"Item": copy.deepcopy(table[value])}

    async def query(self, TableName, IndexName, KeyConditionExpression, ExpressionAttributeValues):
        self.calls.append(("query", TableName, IndexName))
        table = self._table(TableName, "Query")
        attr, placeholder = [part.strip() for part in KeyConditionExpression.split("=")]
        wanted = ExpressionAttributeValues[placeholder]
        items = [copy.deepcopy(i) for i in table.values() if i.get(attr) == wanted]
        return {"Items": items, "Count": len(items)}

    async def update_item(
        self,
        TableName,
        Key,
        UpdateExpression,
        ExpressionAttributeValues,
        ConditionExpression=None,
        ExpressionAttributeNames=None,
        ReturnValues="NONE",
    ):
        self.calls.append(("update_item", TableName))
        table = self._table(TableName, "UpdateItem")
        _, value = self._key_value(Key)
        if ConditionExpression == "attribute_exists(orderId)" and value not in table:
            raise client_error("ConditionalCheckFailedException", "UpdateItem")
        names = ExpressionAttributeNames or {}
        item = table.setdefault(value, dict(Key))
        assert UpdateExpression.startswith("SET ")
        for assignment in UpdateExpression[len("SET "):].split(","):
            lhs, rhs = [part.strip() for part in assignment.split("=")]
            item[names.get(lhs, lhs)] = ExpressionAttributeValues[rhs]
        if ReturnValues == "ALL_NEW":
            return {"Attributes": copy.deepcopy(item)}
        return {}

    async def delete_item(self, TableName, Key):
        self.calls.append(("delete_item", TableName))
        table = self._table(TableName, "DeleteItem")
        _, value = self._key_value(Key)
        table.pop(value, None)
        return {}


class FakeClock:
    def __init__(self, now=1_700_000_000.4):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def settings():
    return StoreSettings(stage="test")


@pytest.fixture
def fake_client():
    return FakeDynamoClient()


@pytest.fixture
def connection(settings, fake_client):
    return StoreConnection(settings=settings, client=fake_client)


@pytest.fixture
def clock():
    return FakeClock()
