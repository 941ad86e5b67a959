"""libSQL client used by every repository.

Local development and tests run against a SQLite file; production points
``TURSO_DATABASE_URL`` at a Turso database. All scheduling writes go through
``execute_batch`` so that state rows and event rows commit together.
"""

import logging
from typing import Any

from libsql_client import Client, ResultSet, Statement, create_client

from src.config import settings

logger = logging.getLogger(__name__)

DEFAULT_URL = "file:scheduling.db"


class TursoClient:
    """Async libSQL connection holder.

    Remote ``libsql://`` URLs authenticate with a token; anything else is
    opened as a local file.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        self.url = url or settings.turso_database_url or DEFAULT_URL
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    @property
    def is_remote(self) -> bool:
        return self.url.startswith("libsql://")

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _require_client(self) -> Client:
        if self._client is None:
            msg = "Not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def connect(self) -> None:
        """Open the connection; a second call is a no-op."""
        if self._client is not None:
            return

        if self.is_remote and self.auth_token:
            self._client = create_client(url=self.url, auth_token=self.auth_token)
        else:
            self._client = create_client(url=self.url)

        logger.info(f"Connected to scheduling database: {self.url}")

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Run one statement with ``?`` placeholders."""
        return await self._require_client().execute(sql, params or [])

    async def query_value(self, sql: str, params: list[Any] | None = None) -> Any:
        """First column of the first row, or None for an empty result."""
        result = await self.execute(sql, params)
        if not result.rows:
            return None
        return result.rows[0][0]

    async def execute_batch(
        self,
        statements: list[str | Statement],
    ) -> list[ResultSet]:
        """Run statements as one transaction.

        Either every statement applies or none does. Callers inspect
        ``rows_affected`` on the returned results for guarded updates.

        Args:
            statements: Plain SQL strings or parameterised Statements

        Returns:
            One ResultSet per statement
        """
        client = self._require_client()
        logger.debug(f"Executing batch of {len(statements)} statement(s)")
        return await client.batch(statements)

    async def close(self) -> None:
        """Close the connection if open."""
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Database connection closed")

    async def is_healthy(self) -> bool:
        """Readiness check used by /health/ready."""
        if not self._client:
            return False
        try:
            return await self.query_value("SELECT 1") == 1
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
