"""Pattern engine: similarity, related entries, trends and recurring motifs."""

import dataclasses
from datetime import date, datetime

import pytest
import pytz

from dreamlens.insights import NO_EVOLVING_PATTERNS, NOT_ENOUGH_HISTORY
from dreamlens.models import (
    CHANGING,
    DECREASING,
    INCREASING,
    INSUFFICIENT_DATA,
    STABLE,
    AnalysisResult,
    CorpusEntry,
)
from dreamlens.patterns import (
    TREND_FIELDS,
    analyze_emotional_pattern,
    analyze_symbolic_connections,
    analyze_trends,
    calculate_similarity,
    compute_trend,
    corpus_statistics,
    find_recurring_patterns,
    find_recurring_themes,
    find_related_entries,
    generate_insights,
    parse_timestamp,
    period_key,
)
from dreamlens.textanalysis import analyze_text


# ============================================================================
# Timestamps
# ============================================================================

class TestTimestamps:

    def test_iso_string_with_z(self):
        parsed = parse_timestamp("2025-03-04T10:00:00Z")
        assert parsed == datetime(2025, 3, 4, 10, tzinfo=pytz.UTC)

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-03-04T10:00:00").tzinfo is not None
        assert parse_timestamp(datetime(2025, 3, 4)).utcoffset().total_seconds() == 0

    def test_date_and_epoch(self):
        assert parse_timestamp(date(2025, 1, 2)) == datetime(2025, 1, 2, tzinfo=pytz.UTC)
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=pytz.UTC)

    @pytest.mark.parametrize("value", ["not a date", "", None, True, {"year": 2025}])
    def test_unreadable(self, value):
        assert parse_timestamp(value) is None

    def test_period_key_is_zero_padded(self):
        assert period_key(datetime(2025, 3, 1)) == "2025-03"
        assert period_key(datetime(999, 12, 1)) == "0999-12"

    def test_period_uses_local_month(self):
        moment = parse_timestamp("2025-01-31T23:30:00-05:00")
        assert period_key(moment) == "2025-01"


# ============================================================================
# Similarity
# ============================================================================

class TestSimilarity:

    def test_identical_keywords(self, analysis_factory):
        first = analysis_factory("positive", 1.0, keywords=("forest", "river"))
        second = analysis_factory("negative", -1.0, keywords=("river", "forest"))
        assert calculate_similarity(first, second).thematic == 1.0

    def test_identical_entries(self, analysis_factory):
        analysis = analysis_factory("positive", 2.0, keywords=("forest",), symbols=("snake",))
        similarity = calculate_similarity(analysis, analysis)
        assert similarity.overall == pytest.approx(1.0)
        assert similarity.emotional == similarity.symbolic == similarity.sentiment == 1.0

    def test_symmetric(self, analysis_factory):
        first = analysis_factory("positive", 1.0, keywords=("forest", "river", "stone"), symbols=("snake",))
        second = analysis_factory("positive", -0.5, keywords=("forest",), symbols=("snake", "river"))
        assert calculate_similarity(first, second) == calculate_similarity(second, first)

    def test_overlap_uses_larger_set(self, analysis_factory):
        first = analysis_factory(keywords=("forest", "river", "stone", "cloud"))
        second = analysis_factory(keywords=("forest",))
        assert calculate_similarity(first, second).thematic == 0.25

    def test_sentiment_is_clamped(self, analysis_factory):
        first = analysis_factory(comparative=0.0)
        assert calculate_similarity(first, analysis_factory(comparative=2.0)).sentiment == 0.0
        assert calculate_similarity(first, analysis_factory(comparative=9.0)).sentiment == 0.0
        assert calculate_similarity(first, analysis_factory(comparative=1.0)).sentiment == 0.5

    def test_sentiment_compares_length_normalized_scores(self, analysis_factory):
        long_text = analysis_factory("positive", 9.0, comparative=0.6)
        short_text = analysis_factory("positive", 1.5, comparative=0.5)
        assert calculate_similarity(long_text, short_text).sentiment == pytest.approx(0.95)

    def test_positive_texts_of_different_length(self):
        first = analyze_text("A happy joyful wonderful beautiful garden")
        second = analyze_text("A happy garden")
        assert first.sentiment.score > second.sentiment.score > 0
        assert calculate_similarity(first, second).sentiment > 0.0

    def test_empty_sets_score_zero(self):
        similarity = calculate_similarity(AnalysisResult(), AnalysisResult())
        assert similarity.overall == 0.0
        assert similarity.symbolic == similarity.thematic == 0.0

    def test_missing_analysis(self, analysis_factory):
        assert calculate_similarity(None, analysis_factory()).overall == 0.0

    def test_scores_within_unit_interval(self, history):
        for first in history:
            for second in history:
                similarity = calculate_similarity(first.analysis, second.analysis)
                for value in (similarity.overall, similarity.emotional, similarity.symbolic,
                              similarity.thematic, similarity.sentiment):
                    assert 0.0 <= value <= 1.0


class TestRelatedEntries:

    def test_sorted_and_thresholded(self, history, analysis_factory):
        target = analysis_factory("negative", -2.0, keywords=("forest", "shadow"), symbols=("snake", "forest"))
        related = find_related_entries(target, history, threshold=0.3)
        ids = [item.entry_id for item in related]
        assert ids[0] == "d1"
        assert "d3" not in ids
        scores = [item.similarity.overall for item in related]
        assert scores == sorted(scores, reverse=True)
        assert all(score >= 0.3 for score in scores)

    def test_limit(self, history, analysis_factory):
        target = analysis_factory("negative", -2.0, keywords=("forest",), symbols=("snake",))
        assert len(find_related_entries(target, history, threshold=0.0, limit=2)) == 2
        assert len(find_related_entries(target, history, threshold=0.0, limit=None)) == 3

    def test_accepts_tuples_and_dicts(self, analysis_factory):
        target = analysis_factory("positive", 1.0, keywords=("garden",))
        history = [
            ("a", "2025-01-01", target),
            ("2025-01-02", target.to_dict()),
            "garbage",
        ]
        related = find_related_entries(target, history, threshold=0.6)
        assert [item.entry_id for item in related] == ["a", None]

    def test_entries_without_analysis_are_skipped(self, analysis_factory):
        related = find_related_entries(analysis_factory(), [CorpusEntry("x", None, None)], threshold=0.0)
        assert related == []


# ============================================================================
# Trends
# ============================================================================

class TestTrends:

    def test_not_enough_history(self, history, analysis_factory):
        result = analyze_trends(analysis_factory("positive", 3.0), history[:2])
        assert result.has_evolving_patterns is False
        assert result.insights == (NOT_ENOUGH_HISTORY,)
        assert result.emotion_trend.direction == INSUFFICIENT_DATA
        assert result.sentiment_trend.direction == INSUFFICIENT_DATA

    def test_improving_journal(self, history, analysis_factory):
        target = analysis_factory("positive", 3.0)
        result = analyze_trends(target, history, target_timestamp="2025-04-02T09:00:00")
        assert result.has_evolving_patterns is True
        assert [key for key, _ in result.sentiment_trend.buckets] == ["2025-01", "2025-02", "2025-03", "2025-04"]
        assert result.sentiment_trend.direction == INCREASING
        assert result.emotion_trend.direction == CHANGING
        assert result.emotion_trend.start_value == "negative"
        assert result.emotion_trend.end_value == "positive"
        assert any("more positive" in line for line in result.insights)
        assert any("from predominantly negative to positive" in line for line in result.insights)

    def test_worsening_journal(self, analysis_factory):
        history = [
            CorpusEntry(i, f"2025-0{i}-10", analysis_factory("neutral", 3.0 - i))
            for i in range(1, 4)
        ]
        result = analyze_trends(analysis_factory("neutral", -5.0), history, target_timestamp="2025-04-10")
        assert result.sentiment_trend.direction == DECREASING
        assert result.emotion_trend.direction == STABLE
        assert any("more negative" in line for line in result.insights)

    def test_stable_journal(self, analysis_factory):
        history = [CorpusEntry(i, f"2025-0{i}-10", analysis_factory("neutral", 1.0)) for i in range(1, 4)]
        result = analyze_trends(analysis_factory("neutral", 1.0), history, target_timestamp="2025-04-10")
        assert result.has_evolving_patterns is False
        assert result.insights == (NO_EVOLVING_PATTERNS,)

    def test_same_month_is_one_bucket(self, analysis_factory):
        history = [
            CorpusEntry(i, f"2025-01-{10 + i}", analysis_factory("neutral", float(i)))
            for i in range(3)
        ]
        result = analyze_trends(analysis_factory("neutral", 3.0), history, target_timestamp="2025-01-20")
        assert result.sentiment_trend.direction == INSUFFICIENT_DATA
        assert len(result.sentiment_trend.buckets) == 1
        key, mean = result.sentiment_trend.buckets[0]
        assert key == "2025-01"
        assert mean == pytest.approx(0.15)

    def test_unreadable_timestamps_are_skipped(self, history, analysis_factory):
        broken = history + [CorpusEntry("bad", "yesterday-ish", analysis_factory("negative", -9.0))]
        result = analyze_trends(analysis_factory("positive", 3.0), broken, target_timestamp="2025-04-02")
        assert len(result.sentiment_trend.buckets) == 4
        assert result.sentiment_trend.direction == INCREASING

    def test_target_defaults_to_now(self, history, analysis_factory):
        result = analyze_trends(analysis_factory("positive", 3.0), history)
        last_key = result.sentiment_trend.buckets[-1][0]
        assert last_key == period_key(datetime.now(pytz.UTC))

    def test_categorical_bucket_mode(self, analysis_factory):
        entries = [
            (parse_timestamp("2025-01-01"), analysis_factory("negative")),
            (parse_timestamp("2025-01-02"), analysis_factory("positive")),
            (parse_timestamp("2025-01-03"), analysis_factory("positive")),
        ]
        trend = compute_trend(entries, TREND_FIELDS["emotion"], min_buckets=1)
        assert trend.buckets == (("2025-01", "positive"),)
        assert trend.direction == STABLE

    def test_categorical_tie_keeps_earliest_value(self, analysis_factory):
        entries = [
            (parse_timestamp("2025-01-01"), analysis_factory("negative")),
            (parse_timestamp("2025-01-02"), analysis_factory("positive")),
        ]
        trend = compute_trend(entries, TREND_FIELDS["emotion"], min_buckets=1)
        assert trend.buckets == (("2025-01", "negative"),)

    def test_missing_sentiment_still_counts_for_emotion(self, analysis_factory):
        silent = dataclasses.replace(analysis_factory("negative", -9.0), sentiment=None)
        entries = [
            (parse_timestamp("2025-01-01"), silent),
            (parse_timestamp("2025-01-02"), silent),
            (parse_timestamp("2025-01-03"), analysis_factory("positive", 2.0)),
        ]
        sentiment = compute_trend(entries, TREND_FIELDS["sentiment"], min_buckets=1)
        emotion = compute_trend(entries, TREND_FIELDS["emotion"], min_buckets=1)
        assert sentiment.buckets == (("2025-01", 0.2),)
        assert emotion.buckets == (("2025-01", "negative"),)

    def test_malformed_stored_records(self):
        records = [
            (f"2025-0{month}-01", {
                "keywords": 5,
                "symbols": [{"symbol": "snake", "frequency": "nan"}],
                "cue_phrases": 3,
                "sentiment": {"score": "inf"},
                "emotion": {"primary": "negative"},
            })
            for month in range(1, 4)
        ]
        target = analyze_text("happy")
        result = analyze_trends(target, records, target_timestamp="2025-04-01")
        assert result.emotion_trend.direction == CHANGING
        assert [key for key, _ in result.sentiment_trend.buckets] == ["2025-04"]
        assert find_related_entries(target, records, threshold=0.0, limit=None)
        report = generate_insights(target, records, target_timestamp="2025-04-01")
        assert report.symbolic_connections.symbols_in_current == ()


# ============================================================================
# Recurring motifs
# ============================================================================

class TestRecurring:

    def test_recurring_patterns(self, history):
        patterns = find_recurring_patterns(history)
        themes = {item.value: item.count for item in patterns.themes}
        symbols = {item.value: item.count for item in patterns.symbols}
        assert themes == {"forest": 2, "river": 2}
        assert symbols == {"snake": 2, "river": 2}

    def test_min_count(self, history):
        patterns = find_recurring_patterns(history, min_count=3)
        assert patterns.themes == ()
        assert patterns.symbols == ()

    def test_emotional_pattern(self, history, analysis_factory):
        pattern = analyze_emotional_pattern(analysis_factory("negative"), history)
        assert pattern.frequency_in_history == {"negative": 2, "positive": 1}
        assert pattern.is_recurring is True
        assert '"negative"' in pattern.insight

    def test_uncommon_emotion(self, history, analysis_factory):
        pattern = analyze_emotional_pattern(analysis_factory("neutral"), history)
        assert pattern.is_recurring is False
        assert "uncommon" in pattern.insight

    def test_emotional_pattern_without_history(self, analysis_factory):
        pattern = analyze_emotional_pattern(analysis_factory("positive"), [])
        assert pattern.frequency_in_history == {}
        assert pattern.is_recurring is False

    def test_symbolic_connections(self, history, analysis_factory):
        target = analysis_factory(symbols=("river", "snake", "moon"))
        connections = analyze_symbolic_connections(target, history)
        assert connections.symbols_in_current == ("river", "snake", "moon")
        assert {item.value for item in connections.recurring} == {"river", "snake"}
        assert "2 symbols" in connections.insight

    def test_unique_symbols(self, history, analysis_factory):
        connections = analyze_symbolic_connections(analysis_factory(symbols=("moon",)), history)
        assert connections.recurring == ()
        assert "unique symbols" in connections.insight

    def test_recurring_themes(self, history, analysis_factory):
        themes = find_recurring_themes(analysis_factory(keywords=("garden", "forest")), history)
        assert [item.value for item in themes.recurring] == ["forest"]
        assert '"forest"' in themes.insight


# ============================================================================
# Corpus statistics
# ============================================================================

class TestCorpusStatistics:

    def test_counts(self, history):
        stats = corpus_statistics(history)
        assert stats.total_entries == 3
        assert [(item.value, item.count) for item in stats.categories] == [("uncategorized", 3)]
        assert [(item.value, item.count) for item in stats.emotions] == [("negative", 2), ("positive", 1)]
        assert [(item.value, item.count) for item in stats.top_symbols] == [("snake", 2), ("river", 2), ("forest", 1)]

    def test_monthly_counts_and_sentiment(self, history, analysis_factory):
        extra = CorpusEntry("d4", "2025-03-28", analysis_factory("positive", 4.0, category="healing"))
        stats = corpus_statistics(history + [extra])
        assert [(month.period, month.entries) for month in stats.monthly] == [
            ("2025-01", 1), ("2025-02", 1), ("2025-03", 2),
        ]
        assert stats.monthly[0].mean_sentiment == pytest.approx(-0.3)
        assert stats.monthly[2].mean_sentiment == pytest.approx(0.3)
        assert stats.categories[0].value == "uncategorized"
        assert ("healing", 1) in [(item.value, item.count) for item in stats.categories]

    def test_symbol_limit(self, history):
        assert [item.value for item in corpus_statistics(history, symbol_limit=1).top_symbols] == ["snake"]

    def test_month_without_sentiment(self, analysis_factory):
        silent = dataclasses.replace(analysis_factory("neutral"), sentiment=None)
        stats = corpus_statistics([CorpusEntry("x", "2025-05-01", silent)])
        assert stats.monthly[0].entries == 1
        assert stats.monthly[0].mean_sentiment is None

    def test_unreadable_timestamps_counted_in_total_only(self, history, analysis_factory):
        stats = corpus_statistics(history + [CorpusEntry("bad", "someday", analysis_factory("neutral"))])
        assert stats.total_entries == 4
        assert sum(month.entries for month in stats.monthly) == 3
        assert ("neutral", 1) in [(item.value, item.count) for item in stats.emotions]

    def test_empty_corpus(self):
        stats = corpus_statistics([])
        assert stats.total_entries == 0
        assert stats.categories == stats.emotions == stats.top_symbols == stats.monthly == ()


# ============================================================================
# Insight report
# ============================================================================

class TestGenerateInsights:

    def test_full_report(self, history, analysis_factory):
        target = analysis_factory(
            "negative", -2.0, keywords=("forest", "shadow"), symbols=("snake", "forest"), category="nightmare"
        )
        report = generate_insights(target, history, target_timestamp="2025-04-01")
        assert report.emotional_pattern.is_recurring is True
        assert report.symbolic_connections.recurring[0].value == "snake"
        assert report.waking_life_connections[0].startswith("Consider recent events")
        assert any("nightmare" in line for line in report.psychological_insights)
        assert report.related_entries[0].entry_id == "d1"
        assert report.evolving_patterns.sentiment_trend.direction != INSUFFICIENT_DATA

    def test_short_history(self, analysis_factory):
        report = generate_insights(analysis_factory("positive", 1.0), [])
        assert report.related_entries == ()
        assert report.evolving_patterns.insights == (NOT_ENOUGH_HISTORY,)
        assert report.symbolic_connections.recurring == ()

    def test_does_not_mutate_history(self, history, analysis_factory):
        snapshot = list(history)
        generate_insights(analysis_factory("positive", 1.0), history)
        assert history == snapshot
