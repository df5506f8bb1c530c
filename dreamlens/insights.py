#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: insights.py
# Author: Wadih Khairallah
# Description: Human readable insight statements built from analysis facts
# Created: 2025-05-22 15:40:18
# Modified: 2025-06-02 18:27:13

from typing import List, Optional, Sequence

from .models import AnalysisResult, RecurringItem, TrendSeries, INCREASING

NOT_ENOUGH_HISTORY = "Not enough dream history to identify evolving patterns."
NO_EVOLVING_PATTERNS = "No clear evolving patterns detected in your dream history."

# Thresholds on the length normalized (comparative) sentiment score
STRONG_NEGATIVE_SCORE = -0.5
STRONG_POSITIVE_SCORE = 0.5

EMOTION_INSIGHTS = {
    "negative": "Your dream exhibits anxiety which may reflect unresolved concerns or challenges you're facing in waking life.",
    "positive": "The positive emotional tone suggests fulfillment or anticipation of something positive in your life.",
    "neutral": "The ambiguous emotional tone might reflect uncertainty about decisions or direction in your waking life.",
}

CATEGORY_INSIGHTS = {
    "nightmare": "This nightmare may serve as a way for your mind to process and confront fears in a safe environment.",
    "lucid": "Your lucid dreaming demonstrates an integration between conscious and unconscious mental processes.",
    "recurring": "Recurring dreams often highlight unresolved issues or important themes that demand your attention.",
}

CATEGORY_SUGGESTIONS = {
    "nightmare": "Reflect on current sources of stress or anxiety in your life that might be manifesting in your dreams.",
    "adventure": "This dream might reflect a desire for more excitement or new experiences in your daily life.",
}


def emotional_insight(primary: Optional[str], is_recurring: bool) -> str:
    if primary is None:
        return "This dream has no recorded emotional tone to compare with your dream history."
    if is_recurring:
        return (
            f'Your dream features "{primary}" emotions, which appear frequently in your dream history. '
            "This suggests a significant emotional pattern worth exploring."
        )
    return (
        f'This dream\'s primary emotion "{primary}" is relatively uncommon in your dream history, '
        "suggesting it may be connected to recent experiences."
    )


def symbolic_insight(recurring: Sequence[RecurringItem]) -> str:
    if not recurring:
        return "This dream contains unique symbols compared to your dream history, suggesting new themes or experiences."
    return (
        f"Your dream contains {len(recurring)} symbols that appear in your past dreams. "
        f'Pay special attention to "{recurring[0].value}" which appears most frequently.'
    )


def theme_insight(recurring: Sequence[RecurringItem]) -> str:
    if not recurring:
        return "This dream explores themes that are relatively new in your dream journal."
    return (
        f'Your dream contains themes that recur in your dream history, especially "{recurring[0].value}". '
        "This suggests important ongoing psychological content."
    )


def psychological_insights(
    analysis: AnalysisResult,
    recurring_symbols: Sequence[RecurringItem],
    category: Optional[str] = None,
) -> List[str]:
    """One statement per available signal: emotion, symbol, sentiment, category."""
    insights = []

    if analysis.emotion is not None and analysis.emotion.primary in EMOTION_INSIGHTS:
        insights.append(EMOTION_INSIGHTS[analysis.emotion.primary])

    if recurring_symbols:
        insights.append(
            f'The presence of recurring symbol "{recurring_symbols[0].value}" suggests this '
            "represents an important psychological archetype for you."
        )

    if analysis.sentiment is not None:
        if analysis.sentiment.comparative < STRONG_NEGATIVE_SCORE:
            insights.append("The strongly negative tone of this dream may be processing difficult emotions or experiences.")
        elif analysis.sentiment.comparative > STRONG_POSITIVE_SCORE:
            insights.append("The positive nature of this dream could reflect psychological well-being or optimism.")
        else:
            insights.append("The mixed emotional tone suggests complex feelings around the dream's subject matter.")

    if category in CATEGORY_INSIGHTS:
        insights.append(CATEGORY_INSIGHTS[category])

    return insights


def waking_life_connections(analysis: AnalysisResult, category: Optional[str] = None) -> List[str]:
    suggestions = ["Consider recent events that may have triggered similar emotions to those in your dream."]

    if category in CATEGORY_SUGGESTIONS:
        suggestions.append(CATEGORY_SUGGESTIONS[category])

    if analysis.sentiment is not None:
        if analysis.sentiment.comparative < 0:
            suggestions.append(
                "The negative tone might indicate unresolved conflicts or concerns that would benefit from conscious attention."
            )
        elif analysis.sentiment.comparative > 0:
            suggestions.append(
                "The positive elements may reflect aspects of your life that bring fulfillment or resonate with your values."
            )

    if analysis.symbols:
        main = analysis.symbols[0]
        suggestions.append(f'The presence of "{main.symbol}" might connect to your waking life: {main.meaning}.')

    return suggestions


def evolution_insights(emotion_trend: TrendSeries, sentiment_trend: TrendSeries) -> List[str]:
    insights = []
    if emotion_trend.has_evolution:
        insights.append(
            f"Your dreams show an emotional shift from predominantly {emotion_trend.start_value} "
            f"to {emotion_trend.end_value} over time."
        )
    if sentiment_trend.has_evolution:
        direction = "more positive" if sentiment_trend.direction == INCREASING else "more negative"
        insights.append(f"The emotional tone of your dreams has become {direction} over the recorded period.")
    return insights
