#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: patterns.py
# Author: Wadih Khairallah
# Description: Cross-entry similarity, recurring motifs and temporal trends
# Created: 2025-05-22 11:08:37
# Modified: 2025-06-02 18:27:13

"""
Pattern Engine

Works on one owner's corpus: the current analysis plus the historical
analyses supplied by the caller. Nothing here mutates the corpus.

History items may be ``CorpusEntry`` values, ``(id, timestamp, analysis)``
or ``(timestamp, analysis)`` tuples; an analysis may be an
``AnalysisResult`` or a stored dict.
"""

import math
import logging
from collections import Counter, defaultdict
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pytz

from . import insights as templates
from .models import (
    CHANGING,
    DECREASING,
    INCREASING,
    STABLE,
    AnalysisResult,
    CorpusEntry,
    CorpusStatistics,
    EmotionalPattern,
    EvolvingPatterns,
    InsightReport,
    MonthlyStatistic,
    RecurringItem,
    RecurringPatterns,
    RelatedEntry,
    SimilarityScore,
    SymbolicConnections,
    ThemePattern,
    TrendSeries,
)

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.4
DEFAULT_RELATED_LIMIT = 5
MIN_HISTORY_FOR_TRENDS = 3
MIN_TREND_BUCKETS = 3
RECURRING_EMOTION_RATIO = 0.3
MIN_RECURRENCE = 2
TOP_SYMBOL_LIMIT = 10

SIMILARITY_WEIGHTS = {
    "emotional": 0.3,
    "symbolic": 0.3,
    "thematic": 0.3,
    "sentiment": 0.1,
}

NUMERIC = "numeric"
CATEGORICAL = "categorical"


# --------------------------------------------------
# Corpus helpers
# --------------------------------------------------

def _as_corpus_entry(item: Any) -> Optional[CorpusEntry]:
    if isinstance(item, CorpusEntry):
        entry = item
    elif isinstance(item, AnalysisResult):
        entry = CorpusEntry(None, None, item)
    elif isinstance(item, (tuple, list)) and len(item) == 3:
        entry = CorpusEntry(*item)
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        entry = CorpusEntry(None, item[0], item[1])
    else:
        logger.warning(f"Skipping unrecognised corpus item: {item!r}")
        return None

    if isinstance(entry.analysis, dict):
        entry = entry._replace(analysis=AnalysisResult.from_dict(entry.analysis))
    elif entry.analysis is not None and not isinstance(entry.analysis, AnalysisResult):
        logger.warning(f"Ignoring analysis of unexpected type for entry {entry.entry_id!r}")
        entry = entry._replace(analysis=None)
    return entry


def _corpus(history: Iterable[Any]) -> List[CorpusEntry]:
    entries = (_as_corpus_entry(item) for item in history or ())
    return [entry for entry in entries if entry is not None]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a timestamp to an aware datetime.

    Accepts datetimes, dates, epoch seconds and ISO-8601 strings. Naive
    values are taken as UTC. Returns None when the value cannot be read.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, pytz.UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed


def period_key(moment: datetime) -> str:
    """Monthly bucket key, zero padded so lexical order is chronological."""
    return f"{moment.year:04d}-{moment.month:02d}"


# --------------------------------------------------
# Similarity
# --------------------------------------------------

def _clamp(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _overlap(first: Iterable[str], second: Iterable[str]) -> float:
    first, second = set(first), set(second)
    if not first or not second:
        return 0.0
    return len(first & second) / max(len(first), len(second))


def calculate_similarity(
    first: Optional[AnalysisResult],
    second: Optional[AnalysisResult],
) -> SimilarityScore:
    """
    Compare two analysed entries.

    Args:
        first (AnalysisResult): An analysed entry
        second (AnalysisResult): Another analysed entry

    Returns:
        SimilarityScore: Component scores and their weighted overall, all in [0, 1]
    """
    if first is None or second is None:
        return SimilarityScore()

    emotional = 0.0
    if first.emotion is not None and second.emotion is not None:
        emotional = 1.0 if first.emotion.primary == second.emotion.primary else 0.0

    symbolic = _clamp(_overlap(first.symbol_names, second.symbol_names))
    thematic = _clamp(_overlap(first.keywords, second.keywords))

    sentiment = 0.0
    if first.sentiment is not None and second.sentiment is not None:
        # comparative scores sit roughly in [-1, 1], raw sums grow with text length
        sentiment = _clamp(1 - abs(first.sentiment.comparative - second.sentiment.comparative) / 2)

    overall = _clamp(
        emotional * SIMILARITY_WEIGHTS["emotional"]
        + symbolic * SIMILARITY_WEIGHTS["symbolic"]
        + thematic * SIMILARITY_WEIGHTS["thematic"]
        + sentiment * SIMILARITY_WEIGHTS["sentiment"]
    )

    return SimilarityScore(
        overall=overall,
        emotional=emotional,
        symbolic=symbolic,
        thematic=thematic,
        sentiment=sentiment,
    )


def find_related_entries(
    target: Optional[AnalysisResult],
    history: Iterable[Any],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    limit: Optional[int] = DEFAULT_RELATED_LIMIT,
) -> List[RelatedEntry]:
    """
    Find historical entries similar to the target.

    Args:
        target (AnalysisResult): The entry to find relations for
        history (Iterable): The owner's other entries
        threshold (float): Minimum overall similarity
        limit (int): Maximum number of entries, None for all

    Returns:
        List[RelatedEntry]: Related entries, most similar first
    """
    related = []
    for entry in _corpus(history):
        if entry.analysis is None:
            continue
        similarity = calculate_similarity(target, entry.analysis)
        if similarity.overall >= threshold:
            related.append(RelatedEntry(entry.entry_id, entry.timestamp, similarity))

    related.sort(key=lambda item: item.similarity.overall, reverse=True)
    logger.debug(f"Found {len(related)} related entries above {threshold}")
    return related[:limit] if limit is not None else related


# --------------------------------------------------
# Trends
# --------------------------------------------------

class TrendField(NamedTuple):
    name: str
    kind: str
    accessor: Callable[[AnalysisResult], Any]


def get_emotion_primary(analysis: AnalysisResult) -> Optional[str]:
    return analysis.emotion.primary if analysis.emotion is not None else None


def get_sentiment_score(analysis: AnalysisResult) -> Optional[float]:
    """Length normalized sentiment, comparable across entries of any size."""
    if analysis.sentiment is None or not math.isfinite(analysis.sentiment.comparative):
        return None
    return analysis.sentiment.comparative


TREND_FIELDS = {
    "emotion": TrendField("emotion", CATEGORICAL, get_emotion_primary),
    "sentiment": TrendField("sentiment", NUMERIC, get_sentiment_score),
}


def _mode(values: Sequence[Any]) -> Any:
    counts = Counter(values)
    # max() keeps the first value reaching the highest count
    return max(counts, key=lambda value: counts[value])


def compute_trend(
    entries: Sequence[Tuple[datetime, Optional[AnalysisResult]]],
    trend_field: TrendField,
    min_buckets: int = MIN_TREND_BUCKETS,
) -> TrendSeries:
    """
    Aggregate one field into monthly buckets and read its direction.

    Numeric fields use the bucket mean and compare consecutive buckets;
    categorical fields use the bucket mode and compare first and last.

    Args:
        entries (Sequence): (timestamp, analysis) pairs in chronological order
        trend_field (TrendField): Which field to aggregate
        min_buckets (int): Non-empty buckets needed to call a direction

    Returns:
        TrendSeries: Buckets, direction and end values
    """
    grouped: Dict[str, List[Any]] = defaultdict(list)
    for moment, analysis in entries:
        if analysis is None:
            continue
        value = trend_field.accessor(analysis)
        if value is not None:
            grouped[period_key(moment)].append(value)

    buckets = []
    for key in sorted(grouped):
        values = grouped[key]
        if trend_field.kind == NUMERIC:
            buckets.append((key, float(np.mean(values))))
        else:
            buckets.append((key, _mode(values)))

    if len(buckets) < min_buckets:
        return TrendSeries.insufficient(tuple(buckets))

    values = [value for _, value in buckets]
    if trend_field.kind == NUMERIC:
        increases = sum(1 for prev, cur in zip(values, values[1:]) if cur > prev)
        decreases = sum(1 for prev, cur in zip(values, values[1:]) if cur < prev)
        if increases > decreases:
            direction = INCREASING
        elif decreases > increases:
            direction = DECREASING
        else:
            direction = STABLE
    else:
        direction = CHANGING if values[0] != values[-1] else STABLE

    return TrendSeries(
        buckets=tuple(buckets),
        direction=direction,
        start_value=values[0],
        end_value=values[-1],
    )


def analyze_trends(
    target: Optional[AnalysisResult],
    history: Iterable[Any],
    target_timestamp: Any = None,
    min_history: int = MIN_HISTORY_FOR_TRENDS,
) -> EvolvingPatterns:
    """
    Detect how emotion and sentiment evolve across the corpus.

    The target entry takes part in the monthly buckets, dated
    ``target_timestamp`` (now, in UTC, when omitted).

    Args:
        target (AnalysisResult): The current entry
        history (Iterable): The owner's other entries with timestamps
        target_timestamp: When the current entry was recorded
        min_history (int): Historical entries needed before any trend is computed

    Returns:
        EvolvingPatterns: Emotion and sentiment trends plus insight statements
    """
    corpus = _corpus(history)
    if len(corpus) < min_history:
        return EvolvingPatterns(
            has_evolving_patterns=False,
            emotion_trend=TrendSeries.insufficient(),
            sentiment_trend=TrendSeries.insufficient(),
            insights=(templates.NOT_ENOUGH_HISTORY,),
        )

    dated = []
    for entry in corpus:
        moment = parse_timestamp(entry.timestamp)
        if moment is None:
            logger.warning(f"Skipping entry {entry.entry_id!r} with unreadable timestamp {entry.timestamp!r}")
            continue
        dated.append((moment, entry.analysis))

    if target is not None:
        moment = parse_timestamp(target_timestamp) if target_timestamp is not None else datetime.now(pytz.UTC)
        if moment is None:
            logger.warning(f"Leaving out the current entry, unreadable timestamp {target_timestamp!r}")
        else:
            dated.append((moment, target))

    dated.sort(key=lambda pair: pair[0])

    emotion_trend = compute_trend(dated, TREND_FIELDS["emotion"])
    sentiment_trend = compute_trend(dated, TREND_FIELDS["sentiment"])
    statements = templates.evolution_insights(emotion_trend, sentiment_trend)

    return EvolvingPatterns(
        has_evolving_patterns=bool(statements),
        emotion_trend=emotion_trend,
        sentiment_trend=sentiment_trend,
        insights=tuple(statements) if statements else (templates.NO_EVOLVING_PATTERNS,),
    )


# --------------------------------------------------
# Recurring motifs
# --------------------------------------------------

def _recurring(counts: Counter, min_count: int) -> Tuple[RecurringItem, ...]:
    items = [RecurringItem(value, count) for value, count in counts.items() if count >= min_count]
    items.sort(key=lambda item: item.count, reverse=True)
    return tuple(items)


def find_recurring_patterns(history: Iterable[Any], min_count: int = MIN_RECURRENCE) -> RecurringPatterns:
    """
    Keywords and symbols appearing in at least ``min_count`` entries.

    Args:
        history (Iterable): Analysed entries of one owner
        min_count (int): Entries a motif must appear in

    Returns:
        RecurringPatterns: Recurring themes and symbols, most frequent first
    """
    themes: Counter = Counter()
    symbols: Counter = Counter()
    for entry in _corpus(history):
        if entry.analysis is None:
            continue
        themes.update(set(entry.analysis.keywords))
        symbols.update(set(entry.analysis.symbol_names))

    return RecurringPatterns(
        themes=_recurring(themes, min_count),
        symbols=_recurring(symbols, min_count),
    )


def analyze_emotional_pattern(
    target: AnalysisResult,
    history: Iterable[Any],
    ratio: float = RECURRING_EMOTION_RATIO,
) -> EmotionalPattern:
    corpus = _corpus(history)
    frequency: Counter = Counter(
        entry.analysis.emotion.primary
        for entry in corpus
        if entry.analysis is not None and entry.analysis.emotion is not None
    )
    current = get_emotion_primary(target)
    is_recurring = current is not None and frequency[current] > len(corpus) * ratio
    return EmotionalPattern(
        current_primary=current,
        frequency_in_history=dict(frequency),
        is_recurring=is_recurring,
        insight=templates.emotional_insight(current, is_recurring),
    )


def _history_counts(corpus: Sequence[CorpusEntry], values: Callable[[AnalysisResult], Iterable[str]]) -> Counter:
    counts: Counter = Counter()
    for entry in corpus:
        if entry.analysis is not None:
            counts.update(set(values(entry.analysis)))
    return counts


def analyze_symbolic_connections(target: AnalysisResult, history: Iterable[Any]) -> SymbolicConnections:
    counts = _history_counts(_corpus(history), lambda analysis: analysis.symbol_names)
    recurring = [RecurringItem(name, counts[name]) for name in target.symbol_names if counts[name] > 1]
    recurring.sort(key=lambda item: item.count, reverse=True)
    return SymbolicConnections(
        symbols_in_current=target.symbol_names,
        recurring=tuple(recurring),
        insight=templates.symbolic_insight(recurring),
    )


def find_recurring_themes(target: AnalysisResult, history: Iterable[Any]) -> ThemePattern:
    counts = _history_counts(_corpus(history), lambda analysis: analysis.keywords)
    recurring = [RecurringItem(keyword, counts[keyword]) for keyword in target.keywords if counts[keyword] > 1]
    recurring.sort(key=lambda item: item.count, reverse=True)
    return ThemePattern(recurring=tuple(recurring), insight=templates.theme_insight(recurring))


def generate_insights(
    target: AnalysisResult,
    history: Iterable[Any],
    target_timestamp: Any = None,
    category: Optional[str] = None,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    limit: int = DEFAULT_RELATED_LIMIT,
) -> InsightReport:
    """
    Full insight report for one entry against the owner's history.

    Args:
        target (AnalysisResult): The current entry
        history (Iterable): The owner's other entries
        target_timestamp: When the current entry was recorded
        category (str): Category of the entry, defaults to its analysed category
        threshold (float): Minimum similarity for related entries
        limit (int): Number of related entries to keep

    Returns:
        InsightReport: Emotional, symbolic and thematic patterns, insights,
            related entries and evolving patterns
    """
    corpus = _corpus(history)
    if category is None and target.category is not None:
        category = target.category.category

    emotional = analyze_emotional_pattern(target, corpus)
    symbolic = analyze_symbolic_connections(target, corpus)
    themes = find_recurring_themes(target, corpus)

    return InsightReport(
        emotional_pattern=emotional,
        symbolic_connections=symbolic,
        recurring_themes=themes,
        psychological_insights=tuple(templates.psychological_insights(target, symbolic.recurring, category)),
        waking_life_connections=tuple(templates.waking_life_connections(target, category)),
        related_entries=tuple(find_related_entries(target, corpus, threshold=threshold, limit=limit)),
        evolving_patterns=analyze_trends(target, corpus, target_timestamp=target_timestamp),
    )


# --------------------------------------------------
# Corpus statistics
# --------------------------------------------------

def corpus_statistics(history: Iterable[Any], symbol_limit: int = TOP_SYMBOL_LIMIT) -> CorpusStatistics:
    """
    Summary counts over an owner's corpus.

    Args:
        history (Iterable): Analysed entries with timestamps
        symbol_limit (int): Number of most common symbols to keep

    Returns:
        CorpusStatistics: Entry total, category and primary emotion
            distributions, top symbols, and per-month entry counts with the
            mean sentiment of each month
    """
    corpus = _corpus(history)
    categories: Counter = Counter()
    emotions: Counter = Counter()
    symbols: Counter = Counter()
    months: Dict[str, List[Optional[float]]] = defaultdict(list)

    for entry in corpus:
        analysis = entry.analysis
        if analysis is not None:
            categories[analysis.category.category if analysis.category is not None else "uncategorized"] += 1
            if analysis.emotion is not None:
                emotions[analysis.emotion.primary] += 1
            symbols.update(list(dict.fromkeys(analysis.symbol_names)))

        moment = parse_timestamp(entry.timestamp)
        if moment is None:
            logger.warning(f"Leaving entry {entry.entry_id!r} out of monthly counts, unreadable timestamp {entry.timestamp!r}")
            continue
        months[period_key(moment)].append(get_sentiment_score(analysis) if analysis is not None else None)

    monthly = []
    for key in sorted(months):
        scores = [score for score in months[key] if score is not None]
        monthly.append(MonthlyStatistic(
            period=key,
            entries=len(months[key]),
            mean_sentiment=float(np.mean(scores)) if scores else None,
        ))

    return CorpusStatistics(
        total_entries=len(corpus),
        categories=_recurring(categories, 1),
        emotions=_recurring(emotions, 1),
        top_symbols=_recurring(symbols, 1)[:max(0, symbol_limit)],
        monthly=tuple(monthly),
    )
