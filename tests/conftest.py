"""Shared fixtures: hand-built analyses and a small dream journal."""

import json

import pytest

from dreamlens.models import (
    AnalysisResult,
    CategorySuggestion,
    CorpusEntry,
    EmotionResult,
    SentimentResult,
    SymbolMatch,
)


def make_analysis(
    primary="neutral",
    score=0.0,
    keywords=(),
    symbols=(),
    category=None,
    emotion_score=100.0,
    comparative=None,
):
    """Build an AnalysisResult by hand, without running the analyzers."""
    breakdown = {"positive": 0.0, "negative": 0.0, "neutral": 0.0}
    breakdown[primary] = emotion_score
    if comparative is None:
        comparative = score / 10
    vote = "positive" if comparative > 0.05 else "negative" if comparative < -0.05 else "neutral"
    return AnalysisResult(
        keywords=tuple(keywords),
        emotion=EmotionResult(primary=primary, score=emotion_score, breakdown=breakdown),
        sentiment=SentimentResult(score=score, comparative=comparative, vote=vote),
        symbols=tuple(SymbolMatch(name, f"meaning of {name}", name) for name in symbols),
        category=CategorySuggestion(category, 80.0) if category else None,
    )


@pytest.fixture
def analysis_factory():
    return make_analysis


@pytest.fixture
def history():
    """Three months of dreams drifting from fear towards calm."""
    return [
        CorpusEntry("d1", "2025-01-05T08:00:00", make_analysis(
            "negative", -3.0, keywords=("forest", "shadow"), symbols=("snake", "forest"))),
        CorpusEntry("d2", "2025-02-11T07:30:00", make_analysis(
            "negative", -1.0, keywords=("forest", "river"), symbols=("snake", "river"))),
        CorpusEntry("d3", "2025-03-20T06:45:00", make_analysis(
            "positive", 2.0, keywords=("garden", "river"), symbols=("river",))),
    ]


@pytest.fixture
def journal_file(tmp_path):
    """A journal file as read by the command line interface."""
    records = [
        {"id": 1, "date": "2025-01-04", "content": "I was terrified and scared, chased by a snake through a dark forest."},
        {"id": 2, "date": "2025-02-09", "content": "A snake waited near the river in the forest. I felt afraid."},
        {"id": 3, "date": "2025-03-15", "content": "Walking along the river I felt calm and peaceful."},
        {"id": 4, "date": "2025-04-02", "content": "I was flying over the ocean and felt happy and free."},
    ]
    path = tmp_path / "journal.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path
