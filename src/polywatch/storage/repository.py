"""Queryable local mirror of upstream markets."""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from polywatch.storage.database import Database
from polywatch.storage.models import Market, WatchlistEntry
from polywatch.utils.errors import DuplicateMarketError, InvalidInputError, NotFoundError
from polywatch.utils.logging import get_logger
from polywatch.utils.params import parse_int

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20
DEFAULT_SORT = "-createdAt"

SORTABLE_FIELDS = {
    "createdAt": Market.created_at,
    "updatedAt": Market.updated_at,
    "title": Market.title,
    "volume": Market.volume,
    "endDate": Market.end_date,
}

# Fields that may change after creation; title and external ID stay fixed
UPDATABLE_FIELDS = {"category_id": "category_id", "categoryId": "category_id"}


@dataclass
class MarketPage:
    """One page of a market listing."""

    markets: list[Market] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


def _order_by(sort: str) -> Any:
    descending = sort.startswith("-")
    name = sort.lstrip("-+")
    column = SORTABLE_FIELDS.get(name)
    if column is None:
        raise InvalidInputError(
            f"Invalid sort field: {name}. Choose from: {', '.join(SORTABLE_FIELDS)}"
        )
    return column.desc() if descending else column.asc()


def _constraint_error(fields: dict[str, Any]) -> InvalidInputError:
    # The only foreign key a caller controls is the category
    category_id = fields.get("category_id")
    if category_id is not None:
        return InvalidInputError(f"Unknown categoryId: {category_id}")
    return InvalidInputError("Market violates a storage constraint")


class MarketRepository:
    """CRUD, search and pagination over locally persisted markets."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def list_markets(
        self,
        search: str = "",
        sort: str = DEFAULT_SORT,
        limit: int | str | None = DEFAULT_PAGE_SIZE,
        offset: int | str | None = 0,
    ) -> MarketPage:
        """List markets with title search, sorting and pagination.

        Args:
            search: Case-insensitive substring matched against titles.
            sort: Field name, prefixed with "-" for descending order.
            limit: Page size, capped at 100.
            offset: Records to skip, floored at 0.

        Returns:
            MarketPage whose total counts every match regardless of paging.
        """
        limit = parse_int(limit, DEFAULT_PAGE_SIZE, name="limit", minimum=1, maximum=MAX_PAGE_SIZE)
        offset = parse_int(offset, 0, name="offset", minimum=0)
        order = _order_by(sort or DEFAULT_SORT)

        query = select(Market)
        count_query = select(func.count()).select_from(Market)
        if search:
            condition = Market.title.icontains(search, autoescape=True)
            query = query.where(condition)
            count_query = count_query.where(condition)

        async with self.db.session() as session:
            result = await session.execute(
                query.order_by(order, Market.id).limit(limit).offset(offset)
            )
            markets = list(result.scalars().all())
            total = (await session.execute(count_query)).scalar_one()

        return MarketPage(markets=markets, total=total, limit=limit, offset=offset)

    async def get_market(self, market_id: int) -> Market:
        """Get a market by local ID.

        Raises:
            NotFoundError: If no such market exists.
        """
        async with self.db.session() as session:
            market = await session.get(Market, market_id)
        if market is None:
            raise NotFoundError("Market not found")
        return market

    async def find_by_external_id(self, external_id: str) -> Market | None:
        """Get a market by its upstream ID, or None."""
        async with self.db.session() as session:
            result = await session.execute(
                select(Market).where(Market.external_id == external_id)
            )
            return result.scalar_one_or_none()

    async def add_market(self, **fields: Any) -> Market:
        """Insert a new market.

        Raises:
            DuplicateMarketError: If the external ID is already stored.
            InvalidInputError: If the insert violates any other constraint,
                such as an unknown category.
        """
        external_id = str(fields.get("external_id"))
        try:
            async with self.db.session() as session:
                market = Market(**fields)
                session.add(market)
                await session.flush()
                await session.refresh(market)
        except IntegrityError as e:
            if await self.find_by_external_id(external_id) is not None:
                logger.info("Duplicate insert rejected for {}", external_id)
                raise DuplicateMarketError(external_id) from e
            logger.info("Insert rejected for {}: {}", external_id, str(e.orig))
            raise _constraint_error(fields) from e
        return market

    async def update_market(self, market_id: int, updates: dict[str, Any]) -> Market:
        """Apply allowed field updates to a market.

        Only the category can change. When no allowed field is present the
        market is returned unchanged.

        Raises:
            NotFoundError: If no such market exists.
            InvalidInputError: If the category does not exist.
        """
        changes = {
            column: updates[key] for key, column in UPDATABLE_FIELDS.items() if key in updates
        }
        if not changes:
            return await self.get_market(market_id)

        try:
            async with self.db.session() as session:
                market = await session.get(Market, market_id)
                if market is None:
                    raise NotFoundError("Market not found")
                for key, value in changes.items():
                    setattr(market, key, value)
                await session.flush()
                await session.refresh(market)
                return market
        except IntegrityError as e:
            raise _constraint_error(changes) from e

    async def delete_market(self, market_id: int) -> Market:
        """Delete a market by local ID, returning the deleted record."""
        async with self.db.session() as session:
            market = await session.get(Market, market_id)
            if market is None:
                raise NotFoundError("Market not found")
            await session.delete(market)
            return market

    async def delete_all_markets(self) -> int:
        """Delete every market together with its watchlist entries.

        Returns:
            Number of markets deleted.
        """
        async with self.db.session() as session:
            await session.execute(delete(WatchlistEntry))
            result = await session.execute(delete(Market))
            deleted = result.rowcount or 0
        logger.info("Deleted {} markets", deleted)
        return deleted

    async def count(self) -> int:
        async with self.db.session() as session:
            return (await session.execute(select(func.count()).select_from(Market))).scalar_one()
