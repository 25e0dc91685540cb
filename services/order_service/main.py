from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from shared.config.database import StoreSettings, connect_store, ensure_table
from shared.observability import configure_logging
from .models import ORDERS_TABLE
from .repository import OrderRepository


@asynccontextmanager
async def order_repository(
    settings: Optional[StoreSettings] = None,
    create_table: bool = True,
) -> AsyncIterator[OrderRepository]:
    """Startup wiring: logging, one store connection, table provisioning, repository."""
    configure_logging()
    settings = settings or StoreSettings.from_env()
    async with connect_store(settings) as connection:
        if create_table:
            await ensure_table(connection, ORDERS_TABLE)
        yield OrderRepository(connection)
