"""
Quillpost Backend — Connection Manager Unit Tests
===================================================

What:  Tests for ConnectionManager caching and single-flight connection.
How:   CosmosClient is patched; no network access.

What we test:
    ✅ Missing connection string raises ConfigurationError without connecting
    ✅ Established connection is cached and reused
    ✅ Concurrent first-time callers share exactly one connect attempt
    ✅ A failed attempt is not cached; the next call retries
    ✅ Cancelled callers neither abort the shared attempt nor pin its failure
    ✅ close() releases the client
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.config import Settings
from app.database import ConnectionManager, connection_manager, get_connection_manager
from app.exceptions import ConfigurationError, DatabaseConnectionError

TEST_CONNECTION_STRING = "AccountEndpoint=https://localhost:8081/;AccountKey=dGVzdC1rZXk=;"


def _mock_cosmos(delay: float = 0.0):
    """Client/database/container mocks; create_database_if_not_exists sleeps `delay`."""
    container = MagicMock(name="container")
    database = MagicMock(name="database")
    database.create_container_if_not_exists = AsyncMock(return_value=container)

    async def create_database(id):
        await asyncio.sleep(delay)
        return database

    client = MagicMock(name="client")
    client.create_database_if_not_exists = AsyncMock(side_effect=create_database)
    client.close = AsyncMock()
    return client, database, container


def _configured_manager() -> ConnectionManager:
    return ConnectionManager(
        Settings(
            cosmos_db_connection_string=TEST_CONNECTION_STRING,
            cosmos_db_name="testdb",
            cosmos_db_posts_container="posts",
        )
    )


class TestConnectionManagerConfiguration:

    @pytest.mark.asyncio
    async def test_missing_connection_string_raises_configuration_error(self):
        manager = ConnectionManager(Settings(cosmos_db_connection_string=""))

        with patch("app.database.CosmosClient") as mock_cosmos:
            with pytest.raises(ConfigurationError) as exc_info:
                await manager.get_connection()

            mock_cosmos.from_connection_string.assert_not_called()

        assert "COSMOS_DB_CONNECTION_STRING" in exc_info.value.message
        assert manager.is_connected is False

    def test_dependency_returns_process_wide_manager(self):
        assert get_connection_manager() is connection_manager


class TestConnectionManagerCaching:

    @pytest.mark.asyncio
    async def test_connect_ensures_database_and_container(self):
        client, database, container = _mock_cosmos()
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client
            connection = await manager.get_connection()

        mock_cosmos.from_connection_string.assert_called_once_with(TEST_CONNECTION_STRING)
        client.create_database_if_not_exists.assert_awaited_once_with(id="testdb")
        _, kwargs = database.create_container_if_not_exists.call_args
        assert kwargs["id"] == "posts"
        assert connection.client is client
        assert connection.database is database
        assert connection.container is container

    @pytest.mark.asyncio
    async def test_connection_is_reused(self):
        client, _, _ = _mock_cosmos()
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client
            first = await manager.get_connection()
            second = await manager.get_connection()

        assert first is second
        assert mock_cosmos.from_connection_string.call_count == 1
        assert manager.is_connected is True

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_attempt(self):
        """Ten simultaneous requests on a cold manager connect exactly once."""
        client, _, _ = _mock_cosmos(delay=0.05)
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client
            connections = await asyncio.gather(
                *(manager.get_connection() for _ in range(10))
            )

        assert mock_cosmos.from_connection_string.call_count == 1
        assert client.create_database_if_not_exists.await_count == 1
        assert all(c is connections[0] for c in connections)


class TestConnectionManagerFailures:

    @pytest.mark.asyncio
    async def test_failed_attempt_is_not_cached(self):
        client, database, _ = _mock_cosmos()
        client.create_database_if_not_exists = AsyncMock(
            side_effect=[RuntimeError("Name or service not known"), database]
        )
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client

            with pytest.raises(DatabaseConnectionError) as exc_info:
                await manager.get_connection()
            assert exc_info.value.message == "Name or service not known"
            assert manager.is_connected is False

            connection = await manager.get_connection()

        assert mock_cosmos.from_connection_string.call_count == 2
        assert connection.database is database
        assert manager.is_connected is True

    @pytest.mark.asyncio
    async def test_failed_attempt_closes_client(self):
        client, _, _ = _mock_cosmos()
        client.create_database_if_not_exists = AsyncMock(side_effect=RuntimeError("unauthorized"))
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client
            with pytest.raises(DatabaseConnectionError):
                await manager.get_connection()

        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_malformed_connection_string_raises_connection_error(self):
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.side_effect = ValueError(
                "Connection string missing setting 'AccountEndpoint'."
            )
            with pytest.raises(DatabaseConnectionError) as exc_info:
                await manager.get_connection()

        assert "AccountEndpoint" in exc_info.value.message
        assert exc_info.value.context["error_type"] == "ValueError"

    @pytest.mark.asyncio
    async def test_concurrent_callers_all_see_failure(self):
        client, _, _ = _mock_cosmos()

        async def fail(id):
            await asyncio.sleep(0.02)
            raise RuntimeError("service unavailable")

        client.create_database_if_not_exists = AsyncMock(side_effect=fail)
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client
            results = await asyncio.gather(
                *(manager.get_connection() for _ in range(5)),
                return_exceptions=True,
            )

        assert mock_cosmos.from_connection_string.call_count == 1
        assert all(isinstance(r, DatabaseConnectionError) for r in results)


class TestConnectionManagerCancellation:

    @staticmethod
    def _gated_database(database):
        """First create_database call blocks on `gate` then fails; later calls succeed."""
        gate = asyncio.Event()
        calls = []

        async def create_database(id):
            calls.append(id)
            if len(calls) == 1:
                await gate.wait()
                raise RuntimeError("transient outage")
            return database

        return gate, calls, AsyncMock(side_effect=create_database)

    @pytest.mark.asyncio
    async def test_failure_after_sole_waiter_cancelled_is_not_cached(self):
        client, database, _ = _mock_cosmos()
        gate, calls, client.create_database_if_not_exists = self._gated_database(database)
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client

            waiter = asyncio.ensure_future(manager.get_connection())
            while not calls:
                await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

            # the attempt fails with nobody waiting on it
            gate.set()
            for _ in range(10):
                await asyncio.sleep(0)

            connection = await manager.get_connection()

        assert mock_cosmos.from_connection_string.call_count == 2
        assert connection.database is database
        assert manager.is_connected is True

    @pytest.mark.asyncio
    async def test_success_after_sole_waiter_cancelled_is_kept(self):
        client, _, _ = _mock_cosmos(delay=0.02)
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client

            waiter = asyncio.ensure_future(manager.get_connection())
            await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

            await asyncio.sleep(0.05)
            assert manager.is_connected is True
            await manager.get_connection()

        assert mock_cosmos.from_connection_string.call_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_attempt_for_others(self):
        client, database, _ = _mock_cosmos(delay=0.05)
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client

            cancelled = asyncio.ensure_future(manager.get_connection())
            survivor = asyncio.ensure_future(manager.get_connection())
            await asyncio.sleep(0.01)
            cancelled.cancel()

            connection = await survivor
            with pytest.raises(asyncio.CancelledError):
                await cancelled

        assert connection.database is database
        assert mock_cosmos.from_connection_string.call_count == 1
        assert client.create_database_if_not_exists.await_count == 1


class TestConnectionManagerClose:

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        client, _, _ = _mock_cosmos()
        manager = _configured_manager()

        with patch("app.database.CosmosClient") as mock_cosmos:
            mock_cosmos.from_connection_string.return_value = client
            await manager.get_connection()
            await manager.close()

        client.close.assert_awaited_once()
        assert manager.is_connected is False

    @pytest.mark.asyncio
    async def test_close_without_connection_is_noop(self):
        manager = _configured_manager()
        await manager.close()
        assert manager.is_connected is False
