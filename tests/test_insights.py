"""Insight statements built from analysis facts and trends."""

from dreamlens.insights import (
    CATEGORY_INSIGHTS,
    CATEGORY_SUGGESTIONS,
    EMOTION_INSIGHTS,
    emotional_insight,
    evolution_insights,
    psychological_insights,
    symbolic_insight,
    theme_insight,
    waking_life_connections,
)
from dreamlens.models import CHANGING, DECREASING, INCREASING, STABLE, AnalysisResult, RecurringItem, TrendSeries
from dreamlens.textanalysis import analyze_text


class TestEmotionalInsight:

    def test_recurring(self):
        assert '"negative"' in emotional_insight("negative", True)
        assert "frequently" in emotional_insight("negative", True)

    def test_uncommon(self):
        assert "uncommon" in emotional_insight("positive", False)

    def test_missing(self):
        assert "no recorded emotional tone" in emotional_insight(None, False)


class TestMotifInsights:

    def test_symbols(self):
        text = symbolic_insight([RecurringItem("snake", 3), RecurringItem("river", 2)])
        assert "2 symbols" in text
        assert '"snake"' in text

    def test_themes(self):
        assert '"forest"' in theme_insight([RecurringItem("forest", 2)])
        assert "relatively new" in theme_insight([])


class TestPsychologicalInsights:

    def test_one_statement_per_signal(self, analysis_factory):
        analysis = analysis_factory("negative", -3.0, comparative=-0.8)
        insights = psychological_insights(analysis, [RecurringItem("snake", 2)], "nightmare")
        assert insights[0] == EMOTION_INSIGHTS["negative"]
        assert '"snake"' in insights[1]
        assert "strongly negative" in insights[2]
        assert insights[3] == CATEGORY_INSIGHTS["nightmare"]

    def test_mixed_tone(self, analysis_factory):
        insights = psychological_insights(analysis_factory("neutral", 0.2), [])
        assert len(insights) == 2
        assert insights[0] == EMOTION_INSIGHTS["neutral"]
        assert "mixed emotional tone" in insights[1]

    def test_long_mildly_negative_text_is_not_strongly_negative(self):
        analysis = analyze_text("I was a little tired walking home through the long quiet evening streets")
        insights = psychological_insights(analysis, [])
        assert not any("strongly negative" in line for line in insights)

    def test_threshold_reads_the_comparative_score(self, analysis_factory):
        analysis = analysis_factory("negative", -8.0, comparative=-0.2)
        assert not any("strongly negative" in line for line in psychological_insights(analysis, []))

    def test_empty_analysis(self):
        assert psychological_insights(AnalysisResult(), []) == []


class TestWakingLife:

    def test_always_has_base_suggestion(self):
        suggestions = waking_life_connections(AnalysisResult())
        assert len(suggestions) == 1
        assert suggestions[0].startswith("Consider recent events")

    def test_adds_category_tone_and_symbol(self, analysis_factory):
        analysis = analysis_factory("positive", 2.0, symbols=("ocean",))
        suggestions = waking_life_connections(analysis, "adventure")
        assert suggestions[1] == CATEGORY_SUGGESTIONS["adventure"]
        assert "positive elements" in suggestions[2]
        assert '"ocean"' in suggestions[3]
        assert "meaning of ocean" in suggestions[3]


class TestEvolution:

    def test_shift_and_direction(self):
        emotion = TrendSeries(direction=CHANGING, start_value="negative", end_value="positive")
        sentiment = TrendSeries(direction=DECREASING)
        insights = evolution_insights(emotion, sentiment)
        assert insights == [
            "Your dreams show an emotional shift from predominantly negative to positive over time.",
            "The emotional tone of your dreams has become more negative over the recorded period.",
        ]

    def test_increasing(self):
        insights = evolution_insights(TrendSeries(direction=STABLE), TrendSeries(direction=INCREASING))
        assert insights == ["The emotional tone of your dreams has become more positive over the recorded period."]

    def test_nothing_to_report(self):
        assert evolution_insights(TrendSeries(), TrendSeries(direction=STABLE)) == []
