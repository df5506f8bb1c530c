"""
Text Analysis Module

Lexicon based analysis of a single dream entry: keywords, emotional tone,
sentiment, dream symbols and a suggested category.
"""

import re
import logging
import concurrent.futures
from typing import Dict, List, Any, Iterable, Optional, Sequence
from collections import Counter

# Third-party imports
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer
from textblob import TextBlob
from sklearn.feature_extraction.text import TfidfVectorizer

from .lexicon import Lexicon, EMOTION_CATEGORIES, get_lexicon
from .categories import suggest_category
from .models import (
    CATEGORIES,
    AnalysisResult,
    CategorySuggestion,
    EmotionResult,
    SentimentResult,
    SymbolMatch,
)

# Setup logger
logger = logging.getLogger(__name__)

DEFAULT_KEYWORD_LIMIT = 10
TFIDF_KEYWORD_LIMIT = 15
MAX_KEYWORDS = 15
MIN_KEYWORD_LENGTH = 4
CONTEXT_WINDOW = 50
POSITIVE_THRESHOLD = 0.05
NEGATIVE_THRESHOLD = -0.05

_tokenizer = RegexpTokenizer(r"[^\W_]+(?:'[^\W_]+)*")
_stemmer = PorterStemmer()
_numeric = re.compile(r"^\d")


def normalize_text(text: Optional[str]) -> List[str]:
    """
    Lowercase and tokenize text into word tokens.

    Args:
        text (str): Raw dream narrative

    Returns:
        List[str]: Tokens with punctuation removed, empty for blank input
    """
    if not text or not text.strip():
        return []
    return _tokenizer.tokenize(text.lower())


def _keyword_candidates(tokens: Iterable[str], lexicon: Lexicon) -> List[str]:
    return [
        token for token in tokens
        if len(token) >= MIN_KEYWORD_LENGTH
        and token not in lexicon.stopwords
        and not _numeric.match(token)
    ]


def extract_keywords(
    tokens: Sequence[str],
    limit: int = DEFAULT_KEYWORD_LIMIT,
    lexicon: Optional[Lexicon] = None,
) -> List[str]:
    """
    Rank keywords by frequency.

    Ties keep the order in which the words first appear.

    Args:
        tokens (Sequence[str]): Normalized tokens
        limit (int): Maximum number of keywords, capped at MAX_KEYWORDS
        lexicon (Lexicon): Stop-word source

    Returns:
        List[str]: Unique keywords, most frequent first
    """
    lexicon = lexicon or get_lexicon()
    word_freq = Counter(_keyword_candidates(tokens, lexicon))
    # Counter keeps first-seen order and sorted() is stable
    ranked = sorted(word_freq, key=lambda word: word_freq[word], reverse=True)
    return ranked[:max(0, min(limit, MAX_KEYWORDS))]


def _as_document(doc: List[str]) -> List[str]:
    return doc


def extract_keywords_tfidf(
    tokens: Sequence[str],
    reference_documents: Iterable[str] = (),
    limit: int = TFIDF_KEYWORD_LIMIT,
    lexicon: Optional[Lexicon] = None,
) -> List[str]:
    """
    Rank keywords by TF-IDF against a reference corpus.

    Terms common across the reference documents (usually the owner's other
    entries) are discounted. Ties keep first-seen order.

    Args:
        tokens (Sequence[str]): Normalized tokens of the entry
        reference_documents (Iterable[str]): Raw texts of other entries
        limit (int): Maximum number of keywords, capped at MAX_KEYWORDS
        lexicon (Lexicon): Stop-word source

    Returns:
        List[str]: Unique keywords, highest weight first
    """
    if isinstance(reference_documents, str):
        reference_documents = [reference_documents]

    lexicon = lexicon or get_lexicon()
    terms = _keyword_candidates(tokens, lexicon)
    if not terms:
        return []

    documents = [terms]
    for doc in reference_documents:
        if not isinstance(doc, str):
            continue
        documents.append(_keyword_candidates(normalize_text(doc), lexicon))

    vectorizer = TfidfVectorizer(analyzer=_as_document)
    matrix = vectorizer.fit_transform(documents)
    weights = matrix[0].toarray().ravel()
    vocabulary = vectorizer.vocabulary_

    unique_terms = list(dict.fromkeys(terms))
    ranked = sorted(unique_terms, key=lambda term: weights[vocabulary[term]], reverse=True)
    return ranked[:max(0, min(limit, MAX_KEYWORDS))]


def classify_emotion(tokens: Sequence[str], lexicon: Optional[Lexicon] = None) -> EmotionResult:
    """
    Bucket emotion words into positive, negative and neutral.

    Args:
        tokens (Sequence[str]): Normalized tokens
        lexicon (Lexicon): Emotion word sets

    Returns:
        EmotionResult: Primary emotion, its score and the percentage breakdown
    """
    lexicon = lexicon or get_lexicon()
    counts: Dict[str, int] = {category: 0 for category in EMOTION_CATEGORIES}
    for token in tokens:
        category = lexicon.emotion_category(token)
        if category:
            counts[category] += 1

    total = sum(counts.values())
    if total == 0:
        return EmotionResult.neutral()

    breakdown = {category: counts[category] / total * 100 for category in EMOTION_CATEGORIES}

    # a category must strictly dominate both others, anything else is neutral
    primary = "neutral"
    for category in ("positive", "negative"):
        others = [breakdown[c] for c in EMOTION_CATEGORIES if c != category]
        if all(breakdown[category] > value for value in others):
            primary = category
            break

    logger.debug(f"Emotion counts: {counts}")
    return EmotionResult(primary=primary, score=breakdown[primary], breakdown=breakdown)


def _token_polarity(token: str, lexicon: Lexicon) -> float:
    weight = lexicon.sentiment.get(token)
    if weight is None:
        weight = lexicon.stemmed_sentiment.get(_stemmer.stem(token), 0.0)
    return weight


def score_sentiment(
    tokens: Sequence[str],
    text: str = "",
    lexicon: Optional[Lexicon] = None,
) -> SentimentResult:
    """
    Additive polarity score over the sentiment lexicon.

    Args:
        tokens (Sequence[str]): Normalized tokens
        text (str): Original text, used for the subjectivity reading
        lexicon (Lexicon): Sentiment weights

    Returns:
        SentimentResult: Raw score, length normalized comparative score and vote
    """
    if not tokens:
        return SentimentResult.neutral()

    lexicon = lexicon or get_lexicon()
    score = float(sum(_token_polarity(token, lexicon) for token in tokens))
    comparative = score / len(tokens)

    if comparative > POSITIVE_THRESHOLD:
        vote = "positive"
    elif comparative < NEGATIVE_THRESHOLD:
        vote = "negative"
    else:
        vote = "neutral"

    subjectivity = 0.0
    if text:
        try:
            subjectivity = float(TextBlob(text).sentiment.subjectivity)
        except Exception as blob_error:
            logger.warning(f"Subjectivity analysis error: {blob_error}")

    return SentimentResult(score=score, comparative=comparative, vote=vote, subjectivity=subjectivity)


def find_symbols(
    text: Optional[str],
    lexicon: Optional[Lexicon] = None,
    window: int = CONTEXT_WINDOW,
) -> List[SymbolMatch]:
    """
    Find dictionary symbols in the text with the passage around them.

    A symbol matches anywhere in the lowercased text, including inside a
    longer word. Each symbol is reported once, with the context of its first
    occurrence and the number of times it occurs.

    Args:
        text (str): Raw dream narrative
        lexicon (Lexicon): Symbol dictionary
        window (int): Characters of context kept on each side of the match

    Returns:
        List[SymbolMatch]: Matches in dictionary order
    """
    if not text or not text.strip():
        return []

    lexicon = lexicon or get_lexicon()
    lowered = text.lower()
    # lower() can change the length of some characters; slice the lowered text then
    source = text if len(lowered) == len(text) else lowered

    found = []
    for symbol, meaning in lexicon.symbols.items():
        index = lowered.find(symbol)
        if index == -1:
            continue

        start = max(0, index - window)
        end = min(len(source), index + len(symbol) + window)
        context = source[start:end]
        if start > 0:
            context = "..." + context
        if end < len(source):
            context += "..."

        found.append(SymbolMatch(
            symbol=symbol,
            meaning=meaning,
            context=context,
            frequency=lowered.count(symbol),
        ))

    logger.debug(f"Identified dream symbols: {[s.symbol for s in found]}")
    return found


def find_cue_phrases(text: Optional[str], lexicon: Optional[Lexicon] = None) -> List[str]:
    """Multi-word lucidity cues ("I was dreaming") present in the text."""
    if not text or not text.strip():
        return []
    lexicon = lexicon or get_lexicon()
    flattened = " ".join(text.lower().split())
    return [
        phrase for phrase in lexicon.lucid_phrases
        if re.search(r"\b" + re.escape(phrase) + r"\b", flattened)
    ]


def analyze_text(
    text: Optional[str],
    reference_documents: Optional[Iterable[str]] = None,
    category: Optional[str] = None,
    keyword_limit: Optional[int] = None,
    lexicon: Optional[Lexicon] = None,
) -> AnalysisResult:
    """
    Analyze a dream entry.

    Never raises for any text: blank input yields the neutral default result.

    Args:
        text (str): Raw dream narrative
        reference_documents (Iterable[str]): Other entries of the owner; when
            given, keywords are ranked by TF-IDF instead of frequency
        category (str): User chosen category, overrides the suggestion
        keyword_limit (int): Number of keywords to keep
        lexicon (Lexicon): Lexicon tables, defaults to the shared lexicon

    Returns:
        AnalysisResult: Keywords, emotion, sentiment, symbols and category
    """
    if text is None:
        text = ""
    elif not isinstance(text, str):
        text = str(text)

    lexicon = lexicon or get_lexicon()
    tokens = normalize_text(text)
    logger.debug(f"Tokenized dream content into {len(tokens)} tokens")

    if reference_documents is not None:
        keywords = extract_keywords_tfidf(
            tokens, reference_documents,
            limit=TFIDF_KEYWORD_LIMIT if keyword_limit is None else keyword_limit, lexicon=lexicon,
        )
    else:
        limit = DEFAULT_KEYWORD_LIMIT if keyword_limit is None else keyword_limit
        keywords = extract_keywords(tokens, limit=limit, lexicon=lexicon)

    analysis = AnalysisResult(
        keywords=tuple(keywords),
        emotion=classify_emotion(tokens, lexicon),
        sentiment=score_sentiment(tokens, text, lexicon),
        symbols=tuple(find_symbols(text, lexicon)) if tokens else (),
        cue_phrases=tuple(find_cue_phrases(text, lexicon)),
    )

    suggestions = suggest_category(analysis, lexicon=lexicon)
    chosen = suggestions[0] if suggestions else None

    if category:
        if category in CATEGORIES:
            confidence = next((s.confidence for s in suggestions if s.category == category), 100.0)
            chosen = CategorySuggestion(category, confidence)
        else:
            logger.warning(f"Ignoring unknown category override: {category!r}")

    return AnalysisResult(
        keywords=analysis.keywords,
        emotion=analysis.emotion,
        sentiment=analysis.sentiment,
        symbols=analysis.symbols,
        category=chosen,
        suggested_categories=tuple(suggestions),
        cue_phrases=analysis.cue_phrases,
    )


def analyze_batch(
    texts: Sequence[Optional[str]],
    max_workers: Optional[int] = None,
    **kwargs: Any,
) -> List[AnalysisResult]:
    """
    Analyze many entries in parallel.

    Args:
        texts (Sequence[str]): Raw dream narratives
        max_workers (int): Thread pool size
        **kwargs: Passed through to analyze_text

    Returns:
        List[AnalysisResult]: One result per text, in input order
    """
    lexicon = kwargs.pop("lexicon", None) or get_lexicon()
    results: List[Optional[AnalysisResult]] = [None] * len(texts)

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(analyze_text, text, lexicon=lexicon, **kwargs): i
            for i, text in enumerate(texts)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            results[future_to_index[future]] = future.result()

    return results
