"""Async Neo4j driver wrapper."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError

from memory_context.core.base import StorageErrorDetails
from memory_context.core.config import settings
from memory_context.core.errors import StoreConnectionError
from memory_context.core.logging import get_logger

logger = get_logger(__name__)


class Neo4jDriver:
    """Lazily connecting async Neo4j driver."""

    def __init__(self, uri: str, username: str, password: str):
        self.uri = uri
        self.username = username
        self.password = password
        self._driver: AsyncDriver | None = None

    async def connect(self) -> None:
        if self._driver is not None:
            return
        driver = AsyncGraphDatabase.driver(self.uri, auth=(self.username, self.password))
        try:
            await driver.verify_connectivity()
        except (DriverError, Neo4jError) as e:
            await driver.close()
            raise StoreConnectionError(
                message=f"Could not connect to Neo4j at {self.uri}: {e!s}",
                details=StorageErrorDetails(
                    source="Neo4jDriver",
                    operation="connect",
                    service_name="neo4j",
                    endpoint=self.uri,
                ),
            ) from e
        self._driver = driver
        logger.info(f"Connected to Neo4j at {self.uri}")

    async def close(self) -> None:
        if self._driver:
            await self._driver.close()
            self._driver = None
            logger.info("Closed Neo4j connection")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session, connecting first if needed."""
        await self.connect()
        assert self._driver is not None
        async with self._driver.session() as session:
            yield session


def create_driver(uri: str | None = None, username: str | None = None, password: str | None = None) -> Neo4jDriver:
    """Driver configured from settings, with optional overrides."""
    return Neo4jDriver(
        uri=uri or settings.neo4j_uri,
        username=username or settings.neo4j_user,
        password=password or settings.neo4j_password.get_secret_value(),
    )
