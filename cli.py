#!/usr/bin/env python3
"""
Smart Scraper CLI

Command-line interface for click-to-scrape: replays element selections given
as CSS / XPath queries against a saved or rendered page, then prints or
exports the extracted rows.
"""

import json
import sys
import logging
from pathlib import Path
from typing import Optional, Tuple

import click
import colorama
from colorama import Fore, Style

colorama.init()

sys.path.insert(0, str(Path(__file__).parent))

from config import config
from dom import PARSERS
from scraper.export import ExportFormat, export_rows
from scraper.reconciler import DuplicateChoice, SelectionOutcome, SelectionReconciler
from services.scrape_session import ScrapeSession

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logging.getLogger('selenium').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)


def print_success(message: str):
    """Print success message in green"""
    click.echo(f"{Fore.GREEN}✓ {message}{Style.RESET_ALL}")


def print_error(message: str):
    """Print error message in red"""
    click.echo(f"{Fore.RED}✗ {message}{Style.RESET_ALL}")


def print_warning(message: str):
    """Print warning message in yellow"""
    click.echo(f"{Fore.YELLOW}⚠ {message}{Style.RESET_ALL}")


def print_info(message: str):
    """Print info message in blue"""
    click.echo(f"{Fore.BLUE}ℹ {message}{Style.RESET_ALL}")


def print_table(session: ScrapeSession, limit: int = 20):
    fields = session.reconciler.fields
    rows = session.reconciler.rows
    click.echo(Fore.CYAN + " | ".join(f.name for f in fields) + Style.RESET_ALL)
    for row in rows[:limit]:
        click.echo(" | ".join(row.get(f.id, '')[:40] for f in fields))
    if len(rows) > limit:
        click.echo(f"... {len(rows) - limit} more rows")


def confirm_switch_prompt(current, proposed) -> bool:
    return click.confirm(
        "You are selecting a new list. This will clear your current extracted data. Continue?",
        default=True
    )


def duplicate_prompt(existing, candidate) -> DuplicateChoice:
    update = click.confirm(
        f'Field "{existing.name}" already uses this selector ({existing.selector}). '
        f'Update the existing field? (No adds a new duplicate column)',
        default=True
    )
    return DuplicateChoice.UPDATE if update else DuplicateChoice.ADD


def load_session(source: str, base_url: Optional[str], parser: str,
                 wait_for: Optional[str], reconciler: SelectionReconciler) -> ScrapeSession:
    if source.startswith(('http://', 'https://')):
        print_info(f"Rendering page: {source}")
        return ScrapeSession.from_url(source, parser, wait_for, reconciler)

    html_content = Path(source).read_text(encoding='utf-8')
    return ScrapeSession.from_html(html_content, base_url or '', parser, reconciler)


@click.group()
@click.version_option(version='1.0.0')
def cli():
    """
    Smart Scraper CLI - click-to-scrape list extraction

    Select one element of a repeating list and get every row of it.
    """
    pass


@cli.command()
@click.argument('source')
@click.argument('query')
@click.option('--parser', type=click.Choice(PARSERS), default=config.HTML_PARSER,
              help='Tree adapter used to parse the page')
@click.option('--base-url', help='Base URL for resolving relative links in a saved file')
@click.option('--json', 'output_json', is_flag=True, help='Output results as JSON')
def detect(source: str, query: str, parser: str, base_url: Optional[str], output_json: bool):
    """Show the list detected above the element matching QUERY"""
    try:
        session = load_session(source, base_url, parser, None, SelectionReconciler())
        result = session.click(query)

        if result.outcome not in (SelectionOutcome.ADDED, SelectionOutcome.SWITCHED):
            print_error(result.message or "No list detected")
            sys.exit(1)

        summary = session.summary()
        if output_json:
            click.echo(json.dumps(summary['list'] | {'items': len(summary['rows'])}, indent=2))
        else:
            print_success(f"Detected list with {len(summary['rows'])} items")
            click.echo(f"Container: {summary['list']['container']}")
            click.echo(f"Item selector: {summary['list']['item_selector']}")
            click.echo(f"Clicked item: {summary['list']['anchor_item']}")
            click.echo(f"Field: {result.field.name} ({result.field.selector}, {result.field.type.value})")

    except (OSError, ValueError, RuntimeError) as e:
        print_error(f"Detection failed: {e}")
        sys.exit(1)


@cli.command()
@click.argument('source')
@click.option('--click', 'clicks', multiple=True, required=True,
              help='CSS or XPath query of an element to select (repeatable, in order)')
@click.option('--parser', type=click.Choice(PARSERS), default=config.HTML_PARSER,
              help='Tree adapter used to parse the page')
@click.option('--base-url', help='Base URL for resolving relative links in a saved file')
@click.option('--wait-for', help='CSS selector to wait for when rendering a URL')
@click.option('--on-duplicate', type=click.Choice(['update', 'add', 'ask']), default='update',
              help='What to do when a selection reuses an existing selector')
@click.option('--yes', '-y', is_flag=True, help='Accept list switches without asking')
@click.option('--clean', 'cleanings', multiple=True, metavar='FIELD=INSTRUCTION',
              help='Clean a column with AI after extraction (field name or id)')
@click.option('--ai-names', is_flag=True, help='Rename columns with AI-suggested names')
@click.option('--format', 'fmt', type=click.Choice(['table', 'csv', 'json']), default='table',
              help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write output to file')
def scrape(source: str, clicks: Tuple[str, ...], parser: str, base_url: Optional[str],
           wait_for: Optional[str], on_duplicate: str, yes: bool, cleanings: Tuple[str, ...],
           ai_names: bool, fmt: str, output: Optional[str]):
    """Replay selections on SOURCE (file or URL) and extract the rows"""
    if on_duplicate == 'ask':
        resolve_duplicate = duplicate_prompt
    else:
        choice = DuplicateChoice(on_duplicate)
        resolve_duplicate = lambda existing, candidate: choice

    reconciler = SelectionReconciler(
        confirm_switch=(lambda current, proposed: True) if yes else confirm_switch_prompt,
        resolve_duplicate=resolve_duplicate
    )

    try:
        session = load_session(source, base_url, parser, wait_for, reconciler)
    except (OSError, ValueError, RuntimeError) as e:
        print_error(f"Failed to load {source}: {e}")
        sys.exit(1)

    for query in clicks:
        result = session.click(query)
        if result.changed:
            print_success(f"{result.outcome.value}: {result.field.name} ({result.field.selector})")
        else:
            print_warning(f"{query}: {result.message}")

    if not session.reconciler.fields:
        print_error("No fields extracted")
        sys.exit(1)

    if cleanings or ai_names:
        from ai.text_cleaner import AITextCleaner

        try:
            cleaner = AITextCleaner()
        except ValueError as e:
            print_error(f"AI unavailable: {e}")
            sys.exit(1)

        if ai_names:
            renamed = session.suggest_names(cleaner)
            print_info(f"Renamed {renamed} fields")

        for spec in cleanings:
            key, _, instruction = spec.partition('=')
            field = session.field_by_name_or_id(key)
            if field is None:
                print_warning(f"Unknown field '{key}'")
                continue
            outcome = session.clean(cleaner, field.id, instruction or None)
            if outcome.success:
                print_success(f"Cleaned {field.name}: {outcome.values_changed} values changed")
            else:
                print_error(f"AI cleaning failed for {field.name}: {outcome.error}")

    print_info(f"{len(session.reconciler.rows)} rows found")

    if fmt == 'table':
        print_table(session)
        return

    if output:
        path = export_rows(session.reconciler.rows, ExportFormat(fmt), output,
                           session.reconciler.fields)
        print_success(f"Saved to: {path}")
    else:
        click.echo(session.export(ExportFormat(fmt)))


@cli.command()
def config_info():
    """Show current configuration"""
    print_info("Smart Scraper Configuration:")
    click.echo(f"Max ancestor depth: {config.MAX_ANCESTOR_DEPTH}")
    click.echo(f"Semantic class prefix: {config.SEMANTIC_CLASS_PREFIX}")
    click.echo(f"HTML parser: {config.HTML_PARSER}")
    click.echo(f"AI Model: {config.AI_MODEL} ({'configured' if config.ai_configured else 'not configured'})")
    click.echo(f"WebDriver Headless: {config.WEBDRIVER_HEADLESS}")
    click.echo(f"Log Level: {config.LOG_LEVEL}")


if __name__ == '__main__':
    cli()
