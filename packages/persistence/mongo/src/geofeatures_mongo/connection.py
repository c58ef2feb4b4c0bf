"""MongoConnectionManager: Motor client lifecycle, authentication, health check."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pymongo.errors import ConfigurationError, OperationFailure, PyMongoError

from .exceptions import MongoAuthError, MongoConnectionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from motor.motor_asyncio import (
        AsyncIOMotorClient,
        AsyncIOMotorCollection,
        AsyncIOMotorDatabase,
    )

logger = logging.getLogger("geofeatures.mongo.connection")

#: Server error codes for AuthenticationFailed and Unauthorized.
AUTH_ERROR_CODES = frozenset({18, 13})

DEFAULT_AUTH_MECHANISM = "SCRAM-SHA-256"


@dataclass(frozen=True)
class AuthContext:
    """Credentials used to open an authenticated session."""

    username: str
    password: str = field(repr=False)
    mechanism: str = DEFAULT_AUTH_MECHANISM
    source: str = "admin"

    @classmethod
    def digest(cls, username: str, password: str, *, source: str = "admin") -> AuthContext:
        """Challenge-response (SCRAM) credentials; the password never crosses the wire."""
        return cls(username, password, DEFAULT_AUTH_MECHANISM, source)

    def client_options(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
            "authMechanism": self.mechanism,
            "authSource": self.source,
        }


def _motor_client_factory(url: str, **options: Any) -> AsyncIOMotorClient[Any]:
    try:
        from motor.motor_asyncio import AsyncIOMotorClient
    except ImportError as e:
        raise MongoConnectionError("motor is required; install with motor>=3.3.0") from e
    return AsyncIOMotorClient(url, **options)


class MongoConnectionManager:
    """
    Wrap a Motor client with lifecycle and health-check helpers.

    Holds no query state.  One instance is shared read-only by the catalog
    resolver and the executor of a store.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 27017,
        *,
        auth: AuthContext | None = None,
        database: str | None = None,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        client_factory: Callable[..., Any] | None = None,
        **kwargs: Any,
    ) -> None:
        self._host = host
        self._port = port
        self._auth = auth
        self._database_name = database
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._client_factory = client_factory or _motor_client_factory
        self._kwargs = kwargs
        self._client: AsyncIOMotorClient[Any] | None = None

    @classmethod
    async def open(
        cls,
        host: str,
        port: int,
        auth: AuthContext | None,
        database: str | None = None,
        **client_options: Any,
    ) -> MongoConnectionManager:
        """
        Create a manager and connect it, verifying credentials with a ping.

        Without *database* the client's default database is used; opening
        fails with ``MongoConnectionError`` when the client has none.
        """
        manager = cls(host, port, auth=auth, database=database, **client_options)
        await manager.connect()
        return manager

    @property
    def url(self) -> str:
        return f"mongodb://{self._host}:{self._port}"

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> AsyncIOMotorClient[Any]:
        """Create, authenticate and cache the Motor client. Idempotent.

        Raises:
            MongoAuthError: The server rejected the credentials.
            MongoConnectionError: The server is unreachable or misconfigured.
        """
        if self._client is not None:
            return self._client
        options: dict[str, Any] = {
            "serverSelectionTimeoutMS": self._server_selection_timeout_ms,
            "connectTimeoutMS": self._connect_timeout_ms,
            **self._kwargs,
        }
        if self._auth is not None:
            options.update(self._auth.client_options())
        try:
            client = self._client_factory(self.url, **options)
        except (PyMongoError, TypeError, ValueError) as e:
            raise MongoConnectionError(str(e)) from e

        try:
            await client.admin.command("ping")
        except OperationFailure as e:
            client.close()
            if e.code in AUTH_ERROR_CODES:
                user = self._auth.username if self._auth else "<anonymous>"
                raise MongoAuthError(
                    f"Authentication failed for {user} at {self.url}: {e}"
                ) from e
            raise MongoConnectionError(str(e)) from e
        except PyMongoError as e:
            client.close()
            raise MongoConnectionError(f"Cannot reach {self.url}: {e}") from e

        if self._database_name is None:
            # Fall back to the database named by the client's connection string
            try:
                self._database_name = client.get_default_database().name
            except ConfigurationError as e:
                client.close()
                raise MongoConnectionError(f"No database configured for {self.url}: {e}") from e

        self._client = client
        logger.info("Connected to %s (database=%s)", self.url, self._database_name)
        return client

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        """Return the Motor client; raises if not connected."""
        if self._client is None:
            raise MongoConnectionError("Not connected; call connect() first")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase[Any]:
        if self._database_name is None:
            raise MongoConnectionError("No database configured")
        return self.client[self._database_name]

    def get_collection(self, name: str) -> AsyncIOMotorCollection[Any]:
        return self.database[name]

    def close(self) -> None:
        """Close the client (synchronous; Motor client.close() is sync)."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Closed connection to %s", self.url)

    async def health_check(self) -> bool:
        """Ping the server; return True if reachable."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError:
            return False
