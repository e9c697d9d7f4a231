"""Market normalizer for inconsistent upstream market shapes."""

import json
import math
from dataclasses import dataclass, field
from typing import Any

from polywatch.utils.logging import get_logger

logger = get_logger(__name__)

UNTITLED_MARKET = "Untitled market"


@dataclass(frozen=True)
class Outcome:
    """One outcome label with its quoted price.

    Attributes:
        label: Outcome name, e.g. "Yes".
        price: Price string as sent upstream, or None when no price lined up.
    """

    label: Any
    price: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "price": self.price}


@dataclass(frozen=True)
class NormalizedMarket:
    """Canonical market record built from a raw upstream payload.

    Attributes:
        id: Upstream market ID.
        title: Market question.
        end_date: End date as sent upstream, or None.
        volume: Trading volume, never negative.
        outcomes: Outcome labels paired with prices by position.
        image: Image URL, or an empty string.
    """

    id: str
    title: str
    end_date: str | None
    volume: float
    outcomes: tuple[Outcome, ...] = field(default_factory=tuple)
    image: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase wire shape."""
        return {
            "id": self.id,
            "title": self.title,
            "endDate": self.end_date,
            "volume": self.volume,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "image": self.image,
        }


def _first(raw: dict[str, Any], *keys: str) -> Any:
    """Return the first truthy value among keys, or None."""
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def parse_array(value: Any) -> list[Any]:
    """Decode a list that may arrive natively or as a JSON-encoded string.

    Anything else, including malformed JSON, decodes to an empty list.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def merge_outcomes(labels: list[Any], prices: list[Any]) -> tuple[Outcome, ...]:
    """Pair labels with prices by index, iterating over the labels.

    Labels without a matching price get None; surplus prices are dropped.
    Items already shaped as {"label", "price"} are passed through.
    """
    merged = []
    for index, label in enumerate(labels):
        if isinstance(label, dict) and "label" in label:
            merged.append(Outcome(label=label["label"], price=label.get("price")))
            continue
        price = prices[index] if index < len(prices) else None
        merged.append(Outcome(label=label, price=price))
    return tuple(merged)


def _to_volume(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if isinstance(value, (int, float)):
        return value if value >= 0 else 0
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return 0
        if not math.isfinite(parsed) or parsed < 0:
            return 0
        # Keep integral strings as ints so "1500" and 1500 normalize alike
        return int(parsed) if parsed.is_integer() else parsed
    return 0


def normalize_market(raw: Any, fallback_id: str = "") -> NormalizedMarket:
    """Normalize a raw upstream market into a NormalizedMarket.

    Never raises: absent or malformed fields degrade to defaults.

    Args:
        raw: Market dictionary from the upstream API.
        fallback_id: ID used when the payload carries none.

    Returns:
        A freshly built NormalizedMarket.
    """
    if not isinstance(raw, dict):
        logger.debug("Normalizing non-dict market payload of type {}", type(raw).__name__)
        raw = {}

    market_id = _first(raw, "id", "_id")
    title = _first(raw, "question", "title")
    image = _first(raw, "image", "icon")

    return NormalizedMarket(
        id=str(market_id) if market_id is not None else fallback_id,
        title=str(title) if title is not None else UNTITLED_MARKET,
        end_date=_first(raw, "endDate", "endDateIso"),
        volume=_to_volume(_first(raw, "volume", "volume24hr", "volumeNum")),
        outcomes=merge_outcomes(
            parse_array(raw.get("outcomes")),
            parse_array(raw.get("outcomePrices")),
        ),
        image=str(image) if image is not None else "",
    )


def normalize_markets(raws: Any) -> list[NormalizedMarket]:
    """Normalize a list of raw markets; a non-list yields an empty list."""
    if not isinstance(raws, list):
        return []
    return [normalize_market(raw) for raw in raws]
