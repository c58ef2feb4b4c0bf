"""Data store parameters and the factory that opens a ready store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    model_validator,
)

from .connection import DEFAULT_AUTH_MECHANISM, AuthContext, MongoConnectionManager
from .datastore import MongoFeatureStore
from .executor import DEFAULT_BATCH_SIZE

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


class MongoDataStoreParams(BaseModel):
    """
    Connection parameters of a MongoDB feature store.

    Unknown keys are ignored so a shared parameter map can be passed as is.
    ``user`` and ``passwd`` are accepted as aliases of ``username`` and
    ``password``; credentials are given both or not at all.  Without
    ``database`` the client's default database is used.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    host: str = "localhost"
    port: int = Field(default=27017, ge=1, le=65535)
    database: str | None = Field(default=None, min_length=1)
    namespace: str = Field(min_length=1)
    username: str | None = Field(
        default=None, validation_alias=AliasChoices("username", "user")
    )
    password: SecretStr | None = Field(
        default=None, validation_alias=AliasChoices("password", "passwd")
    )
    auth_mechanism: str = DEFAULT_AUTH_MECHANISM
    auth_source: str = "admin"
    catalog_collection: str | None = None
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    strict_catalog: bool = False
    server_selection_timeout_ms: int = Field(default=5000, gt=0)

    @model_validator(mode="after")
    def _credentials_together(self) -> MongoDataStoreParams:
        if (self.username is None) != (self.password is None):
            raise ValueError("username and password must be given together")
        return self

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> MongoDataStoreParams:
        """
        Raises:
            pydantic.ValidationError: Missing or invalid parameters.
        """
        return cls.model_validate(dict(params))

    @classmethod
    def can_process(cls, params: Mapping[str, Any]) -> bool:
        """Whether *params* describe a MongoDB feature store."""
        try:
            cls.from_mapping(params)
        except ValidationError:
            return False
        return True

    def auth_context(self) -> AuthContext | None:
        if self.username is None or self.password is None:
            return None
        return AuthContext(
            self.username,
            self.password.get_secret_value(),
            self.auth_mechanism,
            self.auth_source,
        )


async def create_datastore(
    params: MongoDataStoreParams | Mapping[str, Any],
    *,
    client_factory: Callable[..., Any] | None = None,
) -> MongoFeatureStore:
    """
    Open an authenticated connection and return a ready store.

    Raises:
        pydantic.ValidationError: Invalid parameters.
        MongoAuthError: The server rejected the credentials.
        MongoConnectionError: The server is unreachable.
    """
    if not isinstance(params, MongoDataStoreParams):
        params = MongoDataStoreParams.from_mapping(params)
    connection = await MongoConnectionManager.open(
        params.host,
        params.port,
        params.auth_context(),
        params.database,
        server_selection_timeout_ms=params.server_selection_timeout_ms,
        client_factory=client_factory,
    )
    return MongoFeatureStore(
        connection,
        params.namespace,
        catalog_collection=params.catalog_collection,
        strict_catalog=params.strict_catalog,
        batch_size=params.batch_size,
    )
