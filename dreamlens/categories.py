#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: categories.py
# Author: Wadih Khairallah
# Description: Rule table suggesting dream categories
# Created: 2025-05-21 09:14:50
# Modified: 2025-06-02 18:27:13

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .lexicon import Lexicon, get_lexicon
from .models import CATEGORIES, AnalysisResult, CategorySuggestion

logger = logging.getLogger(__name__)

NIGHTMARE_COMPARATIVE = -0.15
NIGHTMARE_EMOTION_SCORE = 70
MAX_NIGHTMARE_CONFIDENCE = 90


@dataclass(frozen=True)
class CategoryRule:
    name: str
    category: str
    predicate: Callable[[AnalysisResult, Lexicon], bool]
    confidence: Callable[[AnalysisResult], float]


def _negative_sentiment(analysis: AnalysisResult, lexicon: Lexicon) -> bool:
    sentiment = analysis.sentiment
    return (
        sentiment is not None
        and sentiment.vote == "negative"
        and sentiment.comparative < NIGHTMARE_COMPARATIVE
    )


def _negative_emotion(analysis: AnalysisResult, lexicon: Lexicon) -> bool:
    emotion = analysis.emotion
    return (
        emotion is not None
        and emotion.primary == "negative"
        and emotion.score > NIGHTMARE_EMOTION_SCORE
    )


def _adventure_theme(analysis: AnalysisResult, lexicon: Lexicon) -> bool:
    terms = set(analysis.keywords) | set(analysis.symbol_names)
    return bool(terms & lexicon.vocabulary("adventure"))


def _fantasy_theme(analysis: AnalysisResult, lexicon: Lexicon) -> bool:
    return bool(set(analysis.keywords) & lexicon.vocabulary("fantasy"))


def _lucid_theme(analysis: AnalysisResult, lexicon: Lexicon) -> bool:
    return bool(set(analysis.keywords) & lexicon.vocabulary("lucid")) or bool(analysis.cue_phrases)


# Evaluated in priority order
CATEGORY_RULES = (
    CategoryRule(
        "negative-sentiment", "nightmare", _negative_sentiment,
        lambda a: min(MAX_NIGHTMARE_CONFIDENCE, abs(a.sentiment.comparative) * 300),
    ),
    CategoryRule(
        "negative-emotion", "nightmare", _negative_emotion,
        lambda a: min(MAX_NIGHTMARE_CONFIDENCE, a.emotion.score),
    ),
    CategoryRule("adventure-theme", "adventure", _adventure_theme, lambda a: 75),
    CategoryRule("fantasy-theme", "fantasy", _fantasy_theme, lambda a: 80),
    CategoryRule("lucid-theme", "lucid", _lucid_theme, lambda a: 85),
)


def suggest_category(
    analysis: Optional[AnalysisResult],
    categories: Iterable[str] = CATEGORIES,
    lexicon: Optional[Lexicon] = None,
) -> List[CategorySuggestion]:
    """
    Suggest dream categories from a completed analysis.

    Args:
        analysis (AnalysisResult): Keyword, emotion, sentiment and symbol signals
        categories (Iterable[str]): Categories the caller accepts
        lexicon (Lexicon): Vocabulary tables, defaults to the shared lexicon

    Returns:
        List[CategorySuggestion]: Candidates, highest confidence first
    """
    if analysis is None:
        return [CategorySuggestion("uncategorized", 50.0)]

    lexicon = lexicon or get_lexicon()
    best: Dict[str, float] = {}

    for rule in CATEGORY_RULES:
        if not rule.predicate(analysis, lexicon):
            continue
        confidence = float(rule.confidence(analysis))
        logger.debug(f"Category rule '{rule.name}' fired: {rule.category} ({confidence:.1f})")
        # a category keeps its strongest supporting rule
        if confidence > best.get(rule.category, -1):
            best[rule.category] = confidence

    if not best:
        if analysis.emotion is not None and analysis.emotion.primary == "positive":
            best["healing"] = 50.0
        else:
            best["uncategorized"] = 30.0

    allowed = set(categories)
    suggestions = [
        CategorySuggestion(category, confidence)
        for category, confidence in best.items()
        if category in allowed
    ]
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)
