import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import aioboto3
import structlog
from botocore.exceptions import ClientError
from dotenv import load_dotenv
from pydantic import BaseModel

logger = structlog.get_logger(__name__)

DEFAULT_STAGE = "dev"
DEFAULT_REGION = "us-east-1"
DEFAULT_LOCAL_ENDPOINT = "http://localhost:8000"  # DynamoDB Local


class StoreSettings(BaseModel):
    stage: str = DEFAULT_STAGE
    region: str = DEFAULT_REGION
    local_endpoint: str = DEFAULT_LOCAL_ENDPOINT

    @classmethod
    def from_env(cls) -> "StoreSettings":
        load_dotenv()
        return cls(
            stage=os.getenv("STAGE") or DEFAULT_STAGE,
            region=os.getenv("AWS_REGION") or DEFAULT_REGION,
            local_endpoint=os.getenv("DYNAMODB_LOCAL_ENDPOINT") or DEFAULT_LOCAL_ENDPOINT,
        )

    @property
    def is_local(self) -> bool:
        return self.stage == "local"

    @property
    def endpoint_url(self) -> Optional[str]:
        # None lets botocore resolve the regional endpoint
        return self.local_endpoint if self.is_local else None

    def table_name(self, entity: str) -> str:
        return f"{self.stage}-{entity}"


@dataclass(frozen=True)
class StoreConnection:
    settings: StoreSettings
    client: Any


def client_kwargs(settings: StoreSettings) -> dict:
    kwargs = {"region_name": settings.region}
    if settings.is_local:
        # The emulator ignores credentials but botocore refuses to sign without them
        kwargs.update(
            endpoint_url=settings.endpoint_url,
            aws_access_key_id="local",
            aws_secret_access_key="local",
        )
    return kwargs


@asynccontextmanager
async def connect_store(settings: StoreSettings) -> AsyncIterator[StoreConnection]:
    """
    Opens the single DynamoDB client used by the repositories.
    Enter this once at startup and hand the yielded connection to each repository.
    """
    kwargs = client_kwargs(settings)
    logger.info(
        "store_connect",
        stage=settings.stage,
        region=settings.region,
        endpoint=kwargs.get("endpoint_url", "regional"),
    )
    session = aioboto3.Session()
    async with session.client("dynamodb", **kwargs) as client:
        yield StoreConnection(settings=settings, client=client)


async def ensure_table(connection: StoreConnection, definition) -> bool:
    """Creates the table for `definition` if it does not exist yet. Returns True when created."""
    table_name = definition.table_name(connection.settings)
    client = connection.client
    try:
        await client.describe_table(TableName=table_name)
        return False
    except ClientError as exc:
        if exc.response["Error"]["Code"] != "ResourceNotFoundException":
            raise

    logger.info("table_create", table=table_name)
    await client.create_table(**definition.create_table_kwargs(table_name))
    waiter = client.get_waiter("table_exists")
    await waiter.wait(TableName=table_name)
    logger.info("table_ready", table=table_name)
    return True
