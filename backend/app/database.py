"""
Quillpost Backend — Document Store Connection Management
==========================================================

What:  A process-wide, lazily-created Cosmos DB connection and the FastAPI
       dependency that hands it to route handlers.
How:   ConnectionManager keeps two pieces of state: the established
       connection and the in-flight connection attempt. The first caller
       starts the attempt as an asyncio task; concurrent callers await that
       same task, so the store is contacted once no matter how many requests
       arrive before the connection is ready.
Who:   Used by route handlers via get_connection_manager(); closed by the
       application lifespan on shutdown.
When:  The connection is created on the first request that needs it and
       kept until the process exits.

State Transitions:
    ┌───────────┐  get_connection()  ┌───────────┐  success  ┌─────────────┐
    │   empty   │───────────────────▶│  pending  │──────────▶│  connected  │
    └───────────┘                    └───────────┘           └─────────────┘
          ▲                               │ failure
          └───────────────────────────────┘  (not cached; next call retries)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from azure.cosmos import PartitionKey
from azure.cosmos.aio import CosmosClient

from app.config import Settings, settings
from app.exceptions import ConfigurationError, DatabaseConnectionError

logger = logging.getLogger(__name__)


@dataclass
class DatabaseConnection:
    """
    Handle to the connected store.

    Attributes:
        client:    The async CosmosClient (owns the HTTP session)
        database:  DatabaseProxy for the configured database
        container: ContainerProxy for the posts container
    """

    client: Any
    database: Any
    container: Any


class ConnectionManager:
    """
    Owns the single shared database connection.

    Responsibilities:
        - get_connection(): return the cached connection, or start/join the
          single in-flight connection attempt
        - close(): release the client at shutdown

    Failures:
        ConfigurationError       no connection string configured
        DatabaseConnectionError  the connect round-trip failed
    """

    def __init__(self, config: Optional[Settings] = None):
        self._settings = config or settings
        self._connection: Optional[DatabaseConnection] = None
        self._pending: Optional["asyncio.Task[DatabaseConnection]"] = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def get_connection(self) -> DatabaseConnection:
        """
        Return the shared connection, connecting on first use.

        Concurrent first-time callers all await the same task. The task is
        shielded so a cancelled request does not abort the attempt for the
        others. A failed attempt is dropped so the next call tries again.
        """
        if self._connection is not None:
            return self._connection

        if not self._settings.cosmos_db_connection_string:
            raise ConfigurationError()

        if self._pending is None:
            attempt = asyncio.ensure_future(self._connect())
            attempt.add_done_callback(self._settle_attempt)
            self._pending = attempt

        return await asyncio.shield(self._pending)

    def _settle_attempt(self, attempt: "asyncio.Task[DatabaseConnection]") -> None:
        """
        Record the outcome of a connect attempt once it finishes.

        Runs whether or not anyone is still awaiting the attempt, so a failure
        is never left behind as the pending attempt when every caller has
        been cancelled.
        """
        if self._pending is not attempt:
            # close() ran while the attempt was in flight
            return
        self._pending = None
        if attempt.cancelled() or attempt.exception() is not None:
            return
        self._connection = attempt.result()

    async def _connect(self) -> DatabaseConnection:
        """
        Build the client and make sure the database and posts container exist.

        create_*_if_not_exists performs a real round-trip, so an unreachable
        account or a bad key fails here rather than on the first query.
        """
        database_name = self._settings.cosmos_db_name
        container_name = self._settings.cosmos_db_posts_container
        logger.info(
            "Connecting to Cosmos DB (database=%s, container=%s)",
            database_name,
            container_name,
        )

        client = None
        try:
            client = CosmosClient.from_connection_string(
                self._settings.cosmos_db_connection_string
            )
            database = await client.create_database_if_not_exists(id=database_name)
            container = await database.create_container_if_not_exists(
                id=container_name,
                partition_key=PartitionKey(path="/id"),
            )
        except Exception as e:
            logger.error("Cosmos DB connection failed: %s", str(e))
            if client is not None:
                try:
                    await client.close()
                except Exception:
                    logger.warning("Failed to close Cosmos client after connection error")
            raise DatabaseConnectionError(
                message=str(e) or "Could not connect to the database",
                context={
                    "database": database_name,
                    "container": container_name,
                    "error_type": type(e).__name__,
                },
            ) from e

        logger.info("Cosmos DB connection established")
        return DatabaseConnection(client=client, database=database, container=container)

    async def close(self) -> None:
        """
        What:  Closes the client and forgets the connection.
        When:  Called during application shutdown (lifespan handler).
        """
        connection = self._connection
        self._connection = None
        self._pending = None
        if connection is not None:
            await connection.client.close()
            logger.info("Cosmos DB connection closed")


# Process-wide instance
connection_manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    """
    FastAPI dependency returning the process-wide connection manager.

    Handlers receive the manager, not the connection, so that the create
    handler can validate its input before any connection is attempted.
    Tests replace it through app.dependency_overrides.
    """
    return connection_manager
