"""CLI for the ``finance_advisor`` package.

This module exposes plain command handlers (``cmd_*``, returning an exit
status) and a Typer-based console interface on top of them. Environment
variables (notably ``OPENAI_API_KEY``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in the
library modules; handlers only load files, call into them and print.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo, OptionInfo

from .currency import format_currency
from .logging_setup import configure_logging
from .session import AnalysisSession

# ---- Command handlers ----------------------------------------------------------


def _load_session(file_path: Path, currency: str | None) -> AnalysisSession | None:
    if not file_path.is_file():
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return None
    session = AnalysisSession(currency_override=currency)
    try:
        outcome = session.load_path(file_path)
    except PermissionError:
        print(f"Error: Permission denied: {file_path}", file=sys.stderr)
        return None
    if not outcome.ok:
        print(f"Error: {outcome.message}", file=sys.stderr)
        return None
    return session


def cmd_analyze(file_path: Path, *, currency: str | None = None, as_json: bool = False) -> int:
    """Parse a transactions file and print its summary.

    Text output lists totals, savings rate and top categories with amounts
    formatted in the session currency. ``as_json`` prints the
    :class:`~finance_advisor.models.FinancialSummary` as JSON instead.
    """

    session = _load_session(file_path, currency)
    if session is None:
        return 1
    summary = session.summary()
    if as_json:
        print(summary.model_dump_json(indent=2))
        return 0

    cur = summary.currency
    print(f"File: {session.source_name}")
    print(f"Transactions: {summary.transaction_count}")
    print(f"Currency: {cur}")
    print(f"Total income: {format_currency(summary.total_income, cur)}")
    print(f"Total expenses: {format_currency(summary.total_expenses, cur)}")
    print(f"Net savings: {format_currency(summary.net_savings, cur)}")
    print(f"Savings rate: {summary.savings_rate:.1f}% ({summary.savings_status})")
    if summary.top_categories:
        print("Top categories:")
        for share in summary.top_categories:
            print(
                f"  {share.category}\t{format_currency(share.amount, cur)}"
                f"\t{share.percentage:.1f}%"
            )
    return 0


def cmd_detect_currency(file_path: Path) -> int:
    session = _load_session(file_path, None)
    if session is None:
        return 1
    print(session.currency)
    return 0


def cmd_insights(file_path: Path, *, currency: str | None = None) -> int:
    """Send the parsed transactions to the insight service and print the advice."""

    from .insights import generate_insights

    if not os.getenv("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
        return 1

    session = _load_session(file_path, currency)
    if session is None:
        return 1
    try:
        report = generate_insights(session.transactions, session.currency)
    except (RuntimeError, ValueError) as e:
        print(f"Error: insight generation failed: {e}", file=sys.stderr)
        return 1

    print(report.insights)
    if report.categorization_suggestions:
        print()
        print("Category suggestions:")
        for s in report.categorization_suggestions:
            print(f"  {s.description}\t{s.suggested_category}")
    return 0


# ---- Typer-based console interface -------------------------------------------

# Module-level argument/option objects keep calls out of parameter defaults.
FILE_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a CSV or .xlsx file with date, description, amount, category columns",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
CURRENCY_OPTION: OptionInfo = typer.Option(
    "--currency",
    help="Currency code to parse and display amounts with (default: detect).",
)
LOG_LEVEL_OPTION: OptionInfo = typer.Option(
    "--log-level",
    help=(
        "Logging level (name or number); overrides FINANCE_ADVISOR_LOG_LEVEL. "
        "Default: WARNING."
    ),
)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Analyze personal-finance transaction exports (CSV/.xlsx). "
        "Loads OPENAI_API_KEY from a local .env before running."
    ),
)


@app.command("analyze")
def analyze_cmd(
    file_path: Annotated[Path, FILE_ARGUMENT],
    currency: Annotated[str | None, CURRENCY_OPTION] = None,
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """Print totals, savings rate and top expense categories."""

    raise typer.Exit(cmd_analyze(file_path, currency=currency, as_json=as_json))


@app.command("detect-currency")
def detect_currency_cmd(file_path: Annotated[Path, FILE_ARGUMENT]) -> None:
    """Print the currency code inferred from the file."""

    raise typer.Exit(cmd_detect_currency(file_path))


@app.command("insights")
def insights_cmd(
    file_path: Annotated[Path, FILE_ARGUMENT],
    currency: Annotated[str | None, CURRENCY_OPTION] = None,
) -> None:
    """Generate narrative financial advice with the hosted model."""

    raise typer.Exit(cmd_insights(file_path, currency=currency))


@app.callback()
def _root(log_level: Annotated[str | None, LOG_LEVEL_OPTION] = None) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), then configures package logging so
    that ``FINANCE_ADVISOR_LOG_LEVEL`` from ``.env`` is honored.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
