#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: __init__.py
# Author: Wadih Khairallah
# Description: 
# Created: 2025-05-20 09:58:12
# Modified: 2025-06-02 18:27:13

from .__version__ import __version__
from .lexicon import (
    Lexicon,
    get_lexicon,
    load_lexicon,
)
from .models import (
    AnalysisResult,
    CorpusEntry,
    CorpusStatistics,
    SimilarityScore,
    TrendSeries,
)
from .textanalysis import (
    analyze_text,
    analyze_batch,
    normalize_text,
    extract_keywords,
    extract_keywords_tfidf,
    classify_emotion,
    score_sentiment,
    find_symbols,
)
from .categories import suggest_category
from .patterns import (
    calculate_similarity,
    find_related_entries,
    analyze_trends,
    find_recurring_patterns,
    generate_insights,
    corpus_statistics,
)

__all__ = [
    "__version__",
    "Lexicon",
    "get_lexicon",
    "load_lexicon",
    "AnalysisResult",
    "CorpusEntry",
    "CorpusStatistics",
    "SimilarityScore",
    "TrendSeries",
    "analyze_text",
    "analyze_batch",
    "normalize_text",
    "extract_keywords",
    "extract_keywords_tfidf",
    "classify_emotion",
    "score_sentiment",
    "find_symbols",
    "suggest_category",
    "calculate_similarity",
    "find_related_entries",
    "analyze_trends",
    "find_recurring_patterns",
    "generate_insights",
    "corpus_statistics",
]
