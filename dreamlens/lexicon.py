#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: lexicon.py
# Author: Wadih Khairallah
# Description: Read-only lexicon tables shared by every analyzer
# Created: 2025-05-20 10:02:41
# Modified: 2025-06-02 18:27:13

"""
Lexicon Store

Stop-words, dream symbol dictionary, emotion word sets, sentiment weights
and the category vocabularies. Dream tables come from the JSON files shipped
in ``dreamlens/data``; English stop-words are merged from the nltk corpus and
sentiment weights come from the VADER lexicon. Loaded once and never mutated
afterwards.
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

import nltk
from nltk.stem import PorterStemmer
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

EMOTION_CATEGORIES = ("positive", "negative", "neutral")


@dataclass(frozen=True)
class Lexicon:
    stopwords: FrozenSet[str]
    symbols: Mapping[str, str]
    emotions: Mapping[str, FrozenSet[str]]
    sentiment: Mapping[str, float]
    stemmed_sentiment: Mapping[str, float]
    vocabularies: Mapping[str, FrozenSet[str]]
    lucid_phrases: Tuple[str, ...]

    def emotion_category(self, token: str) -> Optional[str]:
        """Return the emotion category a token belongs to, if any."""
        for category in EMOTION_CATEGORIES:
            if token in self.emotions[category]:
                return category
        return None

    def vocabulary(self, name: str) -> FrozenSet[str]:
        return self.vocabularies.get(name, frozenset())


def _reject_duplicates(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """json object hook: a repeated key is a data-entry bug, never an override."""
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"Duplicate lexicon key: {key!r}")
        result[key] = value
    return result


def _read_json(data_dir: Path, name: str) -> Any:
    path = data_dir / name
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f, object_pairs_hook=_reject_duplicates)


def _stem_table(weights: Mapping[str, float]) -> Dict[str, float]:
    stemmer = PorterStemmer()
    stemmed: Dict[str, float] = {}
    for word, weight in weights.items():
        # first entry wins when two words share a stem
        stemmed.setdefault(stemmer.stem(word), weight)
    return stemmed


@lru_cache(maxsize=1)
def nltk_stopwords() -> FrozenSet[str]:
    """English stop-words from the nltk corpus, downloaded on first use."""
    try:
        nltk.data.find("corpora/stopwords")
    except LookupError:
        nltk.download("stopwords", quiet=True)

    try:
        return frozenset(nltk.corpus.stopwords.words("english"))
    except LookupError as e:
        logger.warning(f"nltk stop-word corpus unavailable, using the packaged list only: {e}")
        return frozenset()


@lru_cache(maxsize=1)
def vader_weights() -> Dict[str, float]:
    """Polarity weights of the VADER lexicon, keyed by lowercase term."""
    weights: Dict[str, float] = {}
    for term, weight in SentimentIntensityAnalyzer().lexicon.items():
        weights.setdefault(term.lower(), float(weight))
    return weights


def load_lexicon(
    data_dir: Optional[Union[str, Path]] = None,
    sentiment: Optional[Mapping[str, float]] = None,
) -> Lexicon:
    """
    Load every lexicon table from a data directory.

    Args:
        data_dir (str | Path): Directory holding the JSON tables. Defaults to
            the package data directory.
        sentiment (Mapping): Term polarity weights. Defaults to the VADER
            lexicon.

    Returns:
        Lexicon: Immutable lexicon tables.

    Raises:
        ValueError: On duplicate keys or overlapping emotion sets.
    """
    data_dir = Path(data_dir) if data_dir else DATA_DIR

    stopwords = nltk_stopwords() | frozenset(word.lower() for word in _read_json(data_dir, "stopwords.json"))
    symbols = {key.lower(): meaning for key, meaning in _read_json(data_dir, "symbols.json").items()}

    raw_emotions = _read_json(data_dir, "emotions.json")
    emotions = {
        category: frozenset(word.lower() for word in raw_emotions.get(category, []))
        for category in EMOTION_CATEGORIES
    }
    for i, first in enumerate(EMOTION_CATEGORIES):
        for second in EMOTION_CATEGORIES[i + 1:]:
            overlap = emotions[first] & emotions[second]
            if overlap:
                raise ValueError(
                    f"Emotion sets '{first}' and '{second}' overlap: {sorted(overlap)}"
                )

    if sentiment is None:
        sentiment = vader_weights()
    sentiment = {word.lower(): float(weight) for word, weight in sentiment.items()}

    raw_vocabularies = _read_json(data_dir, "vocabularies.json")
    lucid_phrases = tuple(phrase.lower() for phrase in raw_vocabularies.pop("lucid_phrases", []))
    vocabularies = {
        name: frozenset(word.lower() for word in words)
        for name, words in raw_vocabularies.items()
    }

    logger.debug(
        "Loaded lexicon from %s: %d stop-words, %d symbols, %d sentiment terms",
        data_dir, len(stopwords), len(symbols), len(sentiment),
    )

    return Lexicon(
        stopwords=stopwords,
        symbols=MappingProxyType(symbols),
        emotions=MappingProxyType(emotions),
        sentiment=MappingProxyType(sentiment),
        stemmed_sentiment=MappingProxyType(_stem_table(sentiment)),
        vocabularies=MappingProxyType(vocabularies),
        lucid_phrases=lucid_phrases,
    )


@lru_cache(maxsize=1)
def get_lexicon() -> Lexicon:
    """Process-wide lexicon, loaded on first use."""
    return load_lexicon()
