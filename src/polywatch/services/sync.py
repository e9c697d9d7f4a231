"""Synchronization of upstream markets into the local mirror."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DataError, IntegrityError

from polywatch.core.normalizer import normalize_market
from polywatch.data.polymarket.exceptions import InvalidExternalIdError
from polywatch.data.polymarket.gamma import GammaClient
from polywatch.storage.database import Database
from polywatch.storage.models import Market
from polywatch.storage.repository import MarketRepository
from polywatch.utils.errors import DuplicateMarketError, InvalidInputError, PolywatchError
from polywatch.utils.logging import get_logger

logger = get_logger(__name__)

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}

# Columns overwritten when an upstream record is synced again
SYNCED_COLUMNS = ("title", "image", "volume", "outcomes", "end_date")


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a bulk sync.

    Attributes:
        upserted: Records inserted or updated.
        failed: Records skipped or rolled back.
    """

    upserted: int = 0
    failed: int = 0


def parse_end_date(value: Any) -> datetime | None:
    """Parse an upstream ISO date string into an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def transform_market(raw: dict[str, Any]) -> dict[str, Any]:
    """Project a raw upstream market onto the local market columns."""
    normalized = normalize_market(raw)
    return {
        "external_id": normalized.id,
        "title": normalized.title,
        "image": normalized.image,
        "volume": float(normalized.volume),
        "outcomes": [o.to_dict() for o in normalized.outcomes],
        "end_date": parse_end_date(normalized.end_date),
    }


class MarketSyncService:
    """Keeps the local market mirror eventually consistent with upstream."""

    def __init__(self, repository: MarketRepository, client: GammaClient) -> None:
        self.repository = repository
        self.client = client

    @property
    def db(self) -> Database:
        return self.repository.db

    def _upsert_statement(self, values: dict[str, Any]) -> Any:
        insert = _INSERTS.get(self.db.dialect)
        if insert is None:
            raise NotImplementedError(f"Upsert not supported for dialect {self.db.dialect}")

        now = datetime.now(UTC)
        stmt = insert(Market).values(**values, created_at=now, updated_at=now)
        return stmt.on_conflict_do_update(
            index_elements=[Market.external_id],
            set_={
                **{column: getattr(stmt.excluded, column) for column in SYNCED_COLUMNS},
                "updated_at": now,
            },
        )

    async def sync_markets_to_local(self, raw_records: list[dict[str, Any]]) -> SyncResult:
        """Insert or update each record by external ID.

        Each record is upserted inside its own savepoint, so a record that
        violates a constraint rolls back alone and the rest of the batch is
        kept. Everything commits together when the batch ends; a connection
        error propagates and discards the whole batch, leaving the previous
        mirror in place.

        Args:
            raw_records: Raw upstream markets.

        Returns:
            SyncResult with upserted and failed counts.
        """
        if not raw_records:
            return SyncResult()

        upserted = 0
        failed = 0
        async with self.db.session() as session:
            for raw in raw_records:
                values = transform_market(raw)
                if not values["external_id"]:
                    logger.warning("Skipping upstream market without an ID")
                    failed += 1
                    continue
                try:
                    async with session.begin_nested():
                        await session.execute(self._upsert_statement(values))
                except (IntegrityError, DataError) as e:
                    logger.warning(
                        "Upsert failed for market {}: {}", values["external_id"], str(e)
                    )
                    failed += 1
                    continue
                upserted += 1

        logger.info("Synced {} markets to local storage ({} failed)", upserted, failed)
        return SyncResult(upserted=upserted, failed=failed)

    async def _fetch_projection(self, external_id: str) -> dict[str, Any]:
        try:
            raw = await self.client.fetch_market_by_id(external_id)
        except PolywatchError as e:
            raise InvalidExternalIdError(external_id, e.message) from e
        return transform_market({**raw, "id": external_id})

    async def create_market(self, external_id: str, category_id: int | None = None) -> Market:
        """Register a market by external ID, rejecting duplicates.

        The upstream market is fetched first so the stored title matches
        upstream exactly.

        Raises:
            InvalidInputError: If external_id is empty.
            InvalidExternalIdError: If the upstream lookup fails.
            DuplicateMarketError: If the market is already stored, including
                when a concurrent insert wins the race.
        """
        if not external_id:
            raise InvalidInputError("polymarketId is required")

        values = await self._fetch_projection(external_id)

        if await self.repository.find_by_external_id(external_id) is not None:
            raise DuplicateMarketError(external_id)

        market = await self.repository.add_market(**values, category_id=category_id)
        logger.info("Registered market {} as {}", external_id, market.id)
        return market

    async def register_market(
        self, external_id: str, category_id: int | None = None
    ) -> tuple[Market, bool]:
        """Register a market by external ID, returning the existing one if present.

        Returns:
            The stored market and whether this call created it.
        """
        if not external_id:
            raise InvalidInputError("polymarketId is required")

        existing = await self.repository.find_by_external_id(external_id)
        if existing is not None:
            return existing, False

        try:
            return await self.create_market(external_id, category_id), True
        except DuplicateMarketError:
            winner = await self.repository.find_by_external_id(external_id)
            if winner is None:
                raise
            return winner, False
