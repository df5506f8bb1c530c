#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: models.py
# Author: Wadih Khairallah
# Description: Structured values produced by the dream analyzers
# Created: 2025-05-20 10:31:05
# Modified: 2025-06-02 18:27:13

import math
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

CATEGORIES = (
    "lucid", "nightmare", "recurring", "prophetic",
    "healing", "adventure", "fantasy", "uncategorized",
)

# Trend directions
INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"
CHANGING = "changing"
INSUFFICIENT_DATA = "insufficient-data"


def _as_number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    try:
        number = float(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    if number is not None and not math.isfinite(number):
        return default
    return number


def _as_list(value: Any) -> List[Any]:
    """Stored collections must be lists; anything else reads as empty."""
    return list(value) if isinstance(value, (list, tuple)) else []


@dataclass(frozen=True)
class EmotionResult:
    primary: str
    score: float
    breakdown: Dict[str, float]

    @classmethod
    def neutral(cls) -> "EmotionResult":
        return cls(primary="neutral", score=100.0,
                   breakdown={"positive": 0.0, "negative": 0.0, "neutral": 100.0})


@dataclass(frozen=True)
class SentimentResult:
    score: float
    comparative: float
    vote: str
    subjectivity: float = 0.0

    @classmethod
    def neutral(cls) -> "SentimentResult":
        return cls(score=0.0, comparative=0.0, vote="neutral", subjectivity=0.0)


@dataclass(frozen=True)
class SymbolMatch:
    symbol: str
    meaning: str
    context: str
    frequency: int = 1


@dataclass(frozen=True)
class CategorySuggestion:
    category: str
    confidence: float


@dataclass(frozen=True)
class AnalysisResult:
    """
    Analysis of a single dream entry.

    ``emotion``, ``sentiment`` and ``category`` are optional because stored
    results may predate a given analyzer; consumers treat ``None`` as absent.
    """
    keywords: Tuple[str, ...] = ()
    emotion: Optional[EmotionResult] = None
    sentiment: Optional[SentimentResult] = None
    symbols: Tuple[SymbolMatch, ...] = ()
    category: Optional[CategorySuggestion] = None
    suggested_categories: Tuple[CategorySuggestion, ...] = ()
    cue_phrases: Tuple[str, ...] = ()

    @property
    def symbol_names(self) -> Tuple[str, ...]:
        return tuple(s.symbol for s in self.symbols)

    def to_dict(self) -> Dict[str, Any]:
        """JSON friendly dict"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AnalysisResult":
        """
        Rebuild an analysis from a loosely shaped stored record.

        Missing or malformed sections become ``None`` (or empty) instead of
        failing, so an old record can still take part in corpus analysis.
        """
        if not isinstance(data, dict):
            return cls()

        keywords = tuple(dict.fromkeys(k for k in _as_list(data.get("keywords")) if isinstance(k, str)))

        emotion = None
        raw = data.get("emotion") or data.get("emotions")
        if isinstance(raw, dict) and raw.get("primary"):
            breakdown = raw.get("breakdown")
            if not isinstance(breakdown, dict):
                breakdown = {}
            emotion = EmotionResult(
                primary=str(raw["primary"]),
                score=_as_number(raw.get("score")),
                breakdown={k: _as_number(breakdown.get(k)) for k in ("positive", "negative", "neutral")},
            )

        sentiment = None
        raw = data.get("sentiment")
        if isinstance(raw, dict):
            score = _as_number(raw.get("score"), None)
            if score is None:
                logger.warning(f"Ignoring sentiment section without a usable score: {raw!r}")
            else:
                # records without a comparative value stored the length normalized score
                sentiment = SentimentResult(
                    score=score,
                    comparative=_as_number(raw.get("comparative"), score),
                    vote=str(raw.get("vote") or "neutral"),
                    subjectivity=_as_number(raw.get("subjectivity")),
                )

        symbols = []
        seen = set()
        for raw in _as_list(data.get("symbols")):
            if not isinstance(raw, dict) or not raw.get("symbol"):
                continue
            name = str(raw["symbol"])
            if name in seen:
                continue
            seen.add(name)
            symbols.append(SymbolMatch(
                symbol=name,
                meaning=str(raw.get("meaning") or raw.get("interpretation") or ""),
                context=str(raw.get("context") or ""),
                frequency=max(1, int(_as_number(raw.get("frequency"), 1))),
            ))

        category = None
        raw = data.get("category")
        if isinstance(raw, dict) and raw.get("category"):
            category = CategorySuggestion(str(raw["category"]), _as_number(raw.get("confidence")))
        elif isinstance(raw, str) and raw:
            category = CategorySuggestion(raw, 0.0)

        suggested = tuple(
            CategorySuggestion(str(s["category"]), _as_number(s.get("confidence")))
            for s in _as_list(data.get("suggested_categories"))
            if isinstance(s, dict) and s.get("category")
        )

        return cls(
            keywords=keywords,
            emotion=emotion,
            sentiment=sentiment,
            symbols=tuple(symbols),
            category=category,
            suggested_categories=suggested,
            cue_phrases=tuple(p for p in _as_list(data.get("cue_phrases")) if isinstance(p, str)),
        )


class CorpusEntry(NamedTuple):
    """One analysed entry of an owner's corpus."""
    entry_id: Any
    timestamp: Any
    analysis: Optional[AnalysisResult]


@dataclass(frozen=True)
class SimilarityScore:
    overall: float = 0.0
    emotional: float = 0.0
    symbolic: float = 0.0
    thematic: float = 0.0
    sentiment: float = 0.0


@dataclass(frozen=True)
class RelatedEntry:
    entry_id: Any
    timestamp: Any
    similarity: SimilarityScore


@dataclass(frozen=True)
class TrendSeries:
    buckets: Tuple[Tuple[str, Any], ...] = ()
    direction: str = INSUFFICIENT_DATA
    start_value: Any = None
    end_value: Any = None

    @property
    def has_evolution(self) -> bool:
        return self.direction in (INCREASING, DECREASING, CHANGING)

    @classmethod
    def insufficient(cls, buckets: Tuple[Tuple[str, Any], ...] = ()) -> "TrendSeries":
        return cls(buckets=buckets, direction=INSUFFICIENT_DATA)


@dataclass(frozen=True)
class EvolvingPatterns:
    has_evolving_patterns: bool
    emotion_trend: TrendSeries
    sentiment_trend: TrendSeries
    insights: Tuple[str, ...]


@dataclass(frozen=True)
class RecurringItem:
    value: str
    count: int


@dataclass(frozen=True)
class RecurringPatterns:
    themes: Tuple[RecurringItem, ...] = ()
    symbols: Tuple[RecurringItem, ...] = ()


@dataclass(frozen=True)
class EmotionalPattern:
    current_primary: Optional[str]
    frequency_in_history: Dict[str, int]
    is_recurring: bool
    insight: str


@dataclass(frozen=True)
class SymbolicConnections:
    symbols_in_current: Tuple[str, ...]
    recurring: Tuple[RecurringItem, ...]
    insight: str


@dataclass(frozen=True)
class ThemePattern:
    recurring: Tuple[RecurringItem, ...]
    insight: str


@dataclass(frozen=True)
class InsightReport:
    emotional_pattern: EmotionalPattern
    symbolic_connections: SymbolicConnections
    recurring_themes: ThemePattern
    psychological_insights: Tuple[str, ...]
    waking_life_connections: Tuple[str, ...]
    related_entries: Tuple[RelatedEntry, ...]
    evolving_patterns: EvolvingPatterns


@dataclass(frozen=True)
class MonthlyStatistic:
    period: str
    entries: int
    mean_sentiment: Optional[float] = None


@dataclass(frozen=True)
class CorpusStatistics:
    """Aggregate counts over one owner's corpus, most frequent values first."""
    total_entries: int = 0
    categories: Tuple[RecurringItem, ...] = ()
    emotions: Tuple[RecurringItem, ...] = ()
    top_symbols: Tuple[RecurringItem, ...] = ()
    monthly: Tuple[MonthlyStatistic, ...] = ()


def to_jsonable(obj: Any) -> Any:
    """Convert dataclasses, tuples and datetimes into JSON ready values."""
    if hasattr(obj, "__dataclass_fields__"):
        return {k: to_jsonable(v) for k, v in asdict(obj).items()}
    if isinstance(obj, tuple) and hasattr(obj, "_asdict"):
        return {k: to_jsonable(v) for k, v in obj._asdict().items()}
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj
