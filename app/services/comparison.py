from collections import OrderedDict
from typing import List, Optional, Tuple, Union

from structlog import get_logger

from app.config import settings
from app.schemas.comparison import ComparisonRow
from app.schemas.property import Property

logger = get_logger()

MAX_COMPARISON = 4

PropertyId = Union[int, str]


def _same_id(a: PropertyId, b: PropertyId) -> bool:
    # Path parameters arrive as strings while listing ids are often ints
    return str(a) == str(b)


class ComparisonSet:
    """Ordered, bounded set of properties selected for side-by-side viewing."""

    def __init__(self, max_size: int = MAX_COMPARISON):
        self.max_size = max_size
        self._items: List[Property] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def properties(self) -> List[Property]:
        return list(self._items)

    def contains(self, property_id: PropertyId) -> bool:
        return any(_same_id(p.id, property_id) for p in self._items)

    def add(self, prop: Property) -> Tuple[bool, Optional[str]]:
        """Append ``prop``; returns (added, notice)."""
        if self.contains(prop.id):
            return False, "This property is already in your comparison."
        if len(self._items) >= self.max_size:
            return False, f"You can compare up to {self.max_size} properties at a time."
        self._items.append(prop)
        return True, None

    def remove(self, property_id: PropertyId) -> bool:
        before = len(self._items)
        self._items = [p for p in self._items if not _same_id(p.id, property_id)]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []


class ComparisonRegistry:
    """One comparison set per client, held in process memory only.

    Only non-empty sets are kept, and at most ``max_clients`` of them; the
    least recently used client is evicted first.
    """

    def __init__(self, max_size: int = MAX_COMPARISON, max_clients: Optional[int] = None):
        self.max_size = max_size
        self.max_clients = max_clients or settings.MAX_COMPARISON_CLIENTS
        self._sets: "OrderedDict[str, ComparisonSet]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sets)

    def get(self, client_id: str) -> ComparisonSet:
        """The client's set; a fresh unregistered one if they have none."""
        comparison = self._sets.get(client_id)
        if comparison is None:
            return ComparisonSet(self.max_size)
        self._sets.move_to_end(client_id)
        return comparison

    def add(self, client_id: str, prop: Property) -> Tuple[ComparisonSet, bool, Optional[str]]:
        comparison = self.get(client_id)
        added, notice = comparison.add(prop)
        if added:
            self._sets[client_id] = comparison
            self._sets.move_to_end(client_id)
            while len(self._sets) > self.max_clients:
                evicted, _ = self._sets.popitem(last=False)
                logger.info("Comparison evicted", client_id=evicted)
        return comparison, added, notice

    def remove(self, client_id: str, property_id: PropertyId) -> ComparisonSet:
        comparison = self.get(client_id)
        comparison.remove(property_id)
        if not comparison:
            self.discard(client_id)
        return comparison

    def discard(self, client_id: str) -> None:
        self._sets.pop(client_id, None)

    def reset(self) -> None:
        self._sets.clear()


comparison_registry = ComparisonRegistry()


def format_price(price: float) -> str:
    """Pula shorthand: P1.2M, P450K, P900."""
    if price >= 1_000_000:
        return f"P{price / 1_000_000:.1f}M"
    if price >= 1_000:
        return f"P{price / 1_000:.0f}K"
    return f"P{price:,.0f}"


def comparison_table(properties: List[Property]) -> List[ComparisonRow]:
    def area(p: Property) -> str:
        return f"{p.square_feet:,.0f} sq ft" if p.square_feet else "-"

    return [
        ComparisonRow(label="Price", values=[format_price(p.price) for p in properties]),
        ComparisonRow(label="Location", values=[p.location or "-" for p in properties]),
        ComparisonRow(label="Type", values=[p.property_type.title() or "-" for p in properties]),
        ComparisonRow(label="Bedrooms", values=[str(p.bedrooms) for p in properties]),
        ComparisonRow(label="Bathrooms", values=[str(p.bathrooms) for p in properties]),
        ComparisonRow(label="Size", values=[area(p) for p in properties]),
    ]
