from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Exchange:
    key: str
    name: str
    periods: Tuple[str, ...]
    default_period: Optional[str] = None

    @property
    def initial_period(self) -> str:
        return self.default_period or self.periods[0]


@dataclass(frozen=True)
class PriceEntry:
    market: str
    price: Optional[float]
    change: Optional[float] = None
    change_pct: Optional[float] = None


@dataclass(frozen=True)
class TrendSeries:
    market: str
    period: str
    points: List[Tuple[str, float]] = field(default_factory=list)

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self.points]

    @property
    def closes(self) -> List[float]:
        return [close for _, close in self.points]


class Overlay(str, Enum):
    NONE = "none"
    LOG = "log"
    ERROR = "error"
    HELP = "help"


class FetchKind(str, Enum):
    COLD = "cold"
    PRICE = "price"
    TREND = "trend"


@dataclass
class FetchResult:
    """Outcome of one data-source request, delivered to the controller."""

    kind: FetchKind
    prices: Optional[List[PriceEntry]] = None
    trend: Optional[TrendSeries] = None
    error: Optional[Exception] = None
    timestamp: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.error is None
