#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# File: cli.py
# Project: dreamlens
# Author: Based on work by Wadih Khairallah
# Created: 2025-05-23
# Modified: 2025-06-02 18:27:13
#
# Command line interface for the dreamlens toolkit

import sys
import json as j
import math
import logging
import click
import pytz

from datetime import datetime
from typing import Optional, Dict, List, Any, Tuple, Union

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from dreamlens.__version__ import __version__
from dreamlens.lexicon import get_lexicon, EMOTION_CATEGORIES
from dreamlens.models import CATEGORIES, AnalysisResult, CorpusEntry, CorpusStatistics, EvolvingPatterns, InsightReport, RelatedEntry, to_jsonable
from dreamlens.textanalysis import analyze_text, analyze_batch
from dreamlens.patterns import (
    DEFAULT_RELATED_LIMIT,
    DEFAULT_SIMILARITY_THRESHOLD,
    MIN_RECURRENCE,
    analyze_trends,
    corpus_statistics,
    find_recurring_patterns,
    find_related_entries,
    generate_insights,
    parse_timestamp,
)

# Setup console
console = Console()

# Constants
TIMESTAMP = datetime.now(pytz.UTC).isoformat()
_EPOCH = datetime(1970, 1, 1, tzinfo=pytz.UTC)


# Utility functions
def handle_output(
    data: Any,
    source: Optional[str],
    save_path: Optional[str] = None,
    json_output: bool = False
) -> Any:
    """Write results as JSON to stdout or a file. Returns the JSON ready data."""
    data = to_jsonable(data)
    if isinstance(data, dict):
        data["timestamp"] = TIMESTAMP
        data["source"] = source

    output = j.dumps(data, indent=4, ensure_ascii=False)

    if save_path:
        with open(save_path, 'w', encoding='utf-8') as f:
            f.write(output)
        console.print(f"[green]Output saved to:[/] {save_path}")
        return data

    if json_output:
        click.echo(output)
    return data


def load_corpus(path: str, tfidf: bool = False) -> List[Tuple[CorpusEntry, Optional[str]]]:
    """
    Load a corpus file and analyse entries without a stored analysis.

    The file holds a JSON list of {"id", "date", "content", "analysis"?}
    records. Returns (entry, content) pairs sorted by date.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            records = j.load(f)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read corpus '{path}': {e}")

    if not isinstance(records, list):
        raise click.ClickException(f"Corpus '{path}' must hold a JSON list of entries")

    records = [r for r in records if isinstance(r, dict)]
    contents = [r.get("content") or "" for r in records]
    pending = [i for i, r in enumerate(records) if not isinstance(r.get("analysis"), dict)]

    analyses: Dict[int, AnalysisResult] = {}
    if pending:
        if tfidf:
            for i in pending:
                others = [c for k, c in enumerate(contents) if k != i]
                analyses[i] = analyze_text(contents[i], reference_documents=others)
        else:
            results = analyze_batch([contents[i] for i in pending])
            analyses.update(zip(pending, results))

    entries = []
    for i, record in enumerate(records):
        analysis = analyses.get(i) or AnalysisResult.from_dict(record.get("analysis"))
        entry_id = record.get("id", record.get("_id", i))
        entries.append((CorpusEntry(entry_id, record.get("date"), analysis), contents[i]))

    entries.sort(key=lambda pair: parse_timestamp(pair[0].timestamp) or _EPOCH)
    return entries


def split_corpus(
    entries: List[Tuple[CorpusEntry, Optional[str]]],
    entry_id: str
) -> Tuple[CorpusEntry, List[CorpusEntry]]:
    """Separate the requested entry from the rest of the corpus."""
    target = None
    history = []
    for entry, _ in entries:
        if target is None and str(entry.entry_id) == str(entry_id):
            target = entry
        else:
            history.append(entry)
    if target is None:
        raise click.ClickException(f"Entry '{entry_id}' not found in corpus")
    return target, history


def display_analysis(analysis: AnalysisResult, title: str = "Dream Analysis") -> None:
    """Pretty-print a single entry analysis"""
    table = Table(box=box.ROUNDED, expand=True, show_header=False, show_lines=True)
    table.add_column("Signal", style="bold cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")

    table.add_row("Keywords", ", ".join(analysis.keywords) or "[dim]none[/dim]")

    if analysis.emotion is not None:
        breakdown = "  ".join(
            f"{name}: {analysis.emotion.breakdown.get(name, 0):.1f}%" for name in EMOTION_CATEGORIES
        )
        table.add_row("Emotion", f"[magenta]{analysis.emotion.primary}[/] ({analysis.emotion.score:.1f})\n{breakdown}")

    if analysis.sentiment is not None:
        s = analysis.sentiment
        table.add_row(
            "Sentiment",
            f"[magenta]{s.vote}[/] score {s.score:+.1f}, comparative {s.comparative:+.3f}, "
            f"subjectivity {s.subjectivity:.2f}"
        )

    if analysis.category is not None:
        others = ", ".join(f"{c.category} ({c.confidence:.0f})" for c in analysis.suggested_categories)
        table.add_row("Category", f"[green]{analysis.category.category}[/] ({analysis.category.confidence:.0f})\n{others}")

    console.print(Panel(table, title=title, border_style="green", expand=True))

    if analysis.symbols:
        symbols = Table(title="Dream Symbols", box=box.ROUNDED, expand=True, show_lines=True)
        symbols.add_column("Symbol", style="bold cyan", no_wrap=True)
        symbols.add_column("Meaning", overflow="fold")
        symbols.add_column("Context", overflow="fold", style="dim")
        for match in analysis.symbols:
            label = match.symbol if match.frequency == 1 else f"{match.symbol} x{match.frequency}"
            symbols.add_row(f"[magenta]{label}", match.meaning, match.context)
        console.print(symbols)


def display_related(related: List[RelatedEntry], title: str = "Related Dreams") -> None:
    table = Table(title=title, box=box.ROUNDED, expand=True)
    for column in ("Entry", "Date", "Overall", "Emotional", "Symbolic", "Thematic", "Sentiment"):
        table.add_column(column, style="cyan" if column == "Entry" else None)
    for item in related:
        s = item.similarity
        table.add_row(
            str(item.entry_id), str(item.timestamp or ""),
            f"[bold green]{s.overall:.2f}", f"{s.emotional:.2f}", f"{s.symbolic:.2f}",
            f"{s.thematic:.2f}", f"{s.sentiment:.2f}",
        )
    if not related:
        console.print("[yellow]No related dreams above the similarity threshold.[/yellow]")
        return
    console.print(table)


def display_trends(patterns: EvolvingPatterns) -> None:
    for label, trend in (("Emotion", patterns.emotion_trend), ("Sentiment", patterns.sentiment_trend)):
        table = Table(title=f"{label} trend: {trend.direction}", box=box.ROUNDED, expand=True)
        table.add_column("Month", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")
        for key, value in trend.buckets:
            table.add_row(key, f"{value:+.2f}" if isinstance(value, float) else str(value))
        console.print(table)
    console.print(Panel("\n".join(patterns.insights), title="Evolving Patterns", border_style="blue"))


def display_insights(report: InsightReport) -> None:
    sections = [
        ("Emotional Pattern", [report.emotional_pattern.insight]),
        ("Symbolic Connections", [report.symbolic_connections.insight]),
        ("Recurring Themes", [report.recurring_themes.insight]),
        ("Psychological Insights", list(report.psychological_insights)),
        ("Waking Life Connections", list(report.waking_life_connections)),
    ]
    for title, lines in sections:
        console.print(Panel("\n".join(f"• {line}" for line in lines), title=title, border_style="green"))
    display_related(list(report.related_entries))
    display_trends(report.evolving_patterns)


def display_statistics(stats: CorpusStatistics) -> None:
    console.print(Panel(f"[bold]{stats.total_entries}[/] dreams recorded", title="Dream Statistics", border_style="blue"))
    for title, items in (("Categories", stats.categories), ("Primary Emotions", stats.emotions), ("Top Symbols", stats.top_symbols)):
        table = Table(title=title, box=box.ROUNDED, expand=True)
        table.add_column("Value", style="cyan")
        table.add_column("Dreams", style="green", justify="right")
        for item in items:
            table.add_row(item.value, str(item.count))
        console.print(table)

    table = Table(title="By Month", box=box.ROUNDED, expand=True)
    table.add_column("Month", style="cyan", no_wrap=True)
    table.add_column("Dreams", style="green", justify="right")
    table.add_column("Mean sentiment", style="magenta", justify="right")
    for month in stats.monthly:
        mean = "-" if month.mean_sentiment is None else f"{month.mean_sentiment:+.2f}"
        table.add_row(month.period, str(month.entries), mean)
    console.print(table)


def display_labels_in_columns(
    data: Union[List[str], Dict[str, str]],
    columns: int = 4,
    title: str = "Sorted Items"
) -> None:
    if isinstance(data, dict):
        table = Table(title=title, expand=True, show_lines=True)
        table.add_column("Symbol", justify="right", style="cyan", no_wrap=True)
        table.add_column("Meaning", justify="left", style="green")
        for key, value in sorted(data.items()):
            table.add_row(key, value)
    else:
        items = sorted(data)
        rows = math.ceil(len(items) / columns)
        grid = [["" for _ in range(columns)] for _ in range(rows)]
        for i, item in enumerate(items):
            grid[i % rows][i // rows] = item

        table = Table(title=title, expand=True, show_header=False)
        for _ in range(columns):
            table.add_column(justify="left", style="cyan", no_wrap=True)
        for row in grid:
            table.add_row(*row)

    console.print(table)


# Main CLI group
@click.group()
@click.version_option(version=__version__)
@click.option('--debug', is_flag=True, help='Enable debug logging')
def cli(debug: bool):
    """
    dreamlens: Dream journal analysis toolkit

    Extract keywords, emotions, symbols and categories from dream entries and
    find patterns across a dream journal.
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


@cli.command()
@click.argument('text', required=False)
@click.option('--file', 'file_path', type=click.Path(exists=True, dir_okay=False), help='Read the dream from a file')
@click.option('--category', type=click.Choice(list(CATEGORIES)),
              help='Use this category instead of the suggested one')
@click.option('--output', help='Save output to a file')
@click.option('--json', is_flag=True, help='Output results as JSON')
def analyze(
    text: Optional[str],
    file_path: Optional[str],
    category: Optional[str],
    output: Optional[str],
    json: bool
):
    """Analyze a single dream entry"""
    source = "argument"
    if file_path:
        with open(file_path, 'r', encoding='utf-8') as f:
            text = f.read()
        source = file_path
    elif text is None:
        if sys.stdin.isatty():
            console.print("[yellow]No dream text provided.[/yellow]")
            return
        text = sys.stdin.read()
        source = "stdin"

    analysis = analyze_text(text, category=category)
    if json or output:
        handle_output(analysis, source, output, json)
    else:
        display_analysis(analysis)


@cli.command()
@click.argument('corpus', type=click.Path(exists=True, dir_okay=False))
@click.option('--entry', 'entry_id', required=True, help='Id of the dream to compare')
@click.option('--threshold', default=DEFAULT_SIMILARITY_THRESHOLD, show_default=True, type=float,
              help='Minimum overall similarity')
@click.option('--limit', default=DEFAULT_RELATED_LIMIT, show_default=True, type=int,
              help='Maximum number of related dreams')
@click.option('--tfidf', is_flag=True, help='Rank keywords against the rest of the corpus')
@click.option('--output', help='Save output to a file')
@click.option('--json', is_flag=True, help='Output results as JSON')
def related(
    corpus: str,
    entry_id: str,
    threshold: float,
    limit: int,
    tfidf: bool,
    output: Optional[str],
    json: bool
):
    """Find dreams similar to one entry of a corpus"""
    target, history = split_corpus(load_corpus(corpus, tfidf), entry_id)
    results = find_related_entries(target.analysis, history, threshold=threshold, limit=limit)
    if json or output:
        handle_output({"entry": target.entry_id, "related": results}, corpus, output, json)
    else:
        display_related(results, title=f"Dreams related to {target.entry_id}")


@cli.command()
@click.argument('corpus', type=click.Path(exists=True, dir_okay=False))
@click.option('--entry', 'entry_id', required=True, help='Id of the current dream')
@click.option('--output', help='Save output to a file')
@click.option('--json', is_flag=True, help='Output results as JSON')
def trends(
    corpus: str,
    entry_id: str,
    output: Optional[str],
    json: bool
):
    """Show how emotion and sentiment evolve month by month"""
    target, history = split_corpus(load_corpus(corpus), entry_id)
    result = analyze_trends(target.analysis, history, target_timestamp=target.timestamp)
    if json or output:
        handle_output(result, corpus, output, json)
    else:
        display_trends(result)


@cli.command()
@click.argument('corpus', type=click.Path(exists=True, dir_okay=False))
@click.option('--entry', 'entry_id', required=True, help='Id of the dream to explain')
@click.option('--output', help='Save output to a file')
@click.option('--json', is_flag=True, help='Output results as JSON')
def insights(
    corpus: str,
    entry_id: str,
    output: Optional[str],
    json: bool
):
    """Generate insights for one dream against the rest of the journal"""
    target, history = split_corpus(load_corpus(corpus), entry_id)
    report = generate_insights(target.analysis, history, target_timestamp=target.timestamp)
    if json or output:
        handle_output(report, corpus, output, json)
    else:
        display_insights(report)


@cli.command()
@click.argument('corpus', type=click.Path(exists=True, dir_okay=False))
@click.option('--min-count', default=MIN_RECURRENCE, show_default=True, type=int,
              help='Dreams a motif must appear in')
@click.option('--output', help='Save output to a file')
@click.option('--json', is_flag=True, help='Output results as JSON')
def patterns(
    corpus: str,
    min_count: int,
    output: Optional[str],
    json: bool
):
    """List themes and symbols recurring across the journal"""
    entries = [entry for entry, _ in load_corpus(corpus)]
    result = find_recurring_patterns(entries, min_count=min_count)
    if json or output:
        handle_output(result, corpus, output, json)
        return

    for title, items in (("Recurring Themes", result.themes), ("Recurring Symbols", result.symbols)):
        table = Table(title=title, box=box.ROUNDED, expand=True)
        table.add_column("Motif", style="cyan")
        table.add_column("Dreams", style="green", justify="right")
        for item in items:
            table.add_row(item.value, str(item.count))
        console.print(table)


@cli.command()
@click.argument('corpus', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', help='Save output to a file')
@click.option('--json', is_flag=True, help='Output results as JSON')
def stats(
    corpus: str,
    output: Optional[str],
    json: bool
):
    """Summarize the journal by category, emotion, symbol and month"""
    entries = [entry for entry, _ in load_corpus(corpus)]
    result = corpus_statistics(entries)
    if json or output:
        handle_output(result, corpus, output, json)
    else:
        display_statistics(result)


# List command group for the lexicon tables
@cli.group(name="list")
def list_group():
    """List the lexicon tables"""
    pass


@list_group.command(name="symbols")
@click.option('--json', is_flag=True, help='Output results as JSON')
def list_symbols(json: bool):
    """List dream symbols and their meanings"""
    symbols = dict(get_lexicon().symbols)
    if json:
        handle_output(symbols, None, None, json)
    else:
        display_labels_in_columns(symbols, title="Dream Symbols")


@list_group.command(name="emotions")
@click.option('--json', is_flag=True, help='Output results as JSON')
def list_emotions(json: bool):
    """List emotion words by category"""
    emotions = {category: sorted(get_lexicon().emotions[category]) for category in EMOTION_CATEGORIES}
    if json:
        handle_output(emotions, None, None, json)
        return
    for category, words in emotions.items():
        display_labels_in_columns(words, columns=4, title=f"{category.title()} Emotion Words")


def main():
    try:
        cli()
    except Exception as e:
        console.print(f"[bold red]Error:[/] {str(e)}")
        if '--debug' in sys.argv:
            import traceback
            console.print(traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    main()
