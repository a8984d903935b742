# budget_dashboard/cli.py
import logging
import os
from calendar import monthrange
from datetime import date

import click
import yaml

from budget_dashboard.aggregator import (
    budget_status,
    category_totals,
    filter_transactions,
    monthly_totals,
    subcategory_totals,
)
from budget_dashboard.config import load_config, vocabulary_from_config
from budget_dashboard.core.models import DashboardReport
from budget_dashboard.core.vocabulary import check_transactions
from budget_dashboard.exceptions import InvalidArgumentError
from budget_dashboard.loaders import load_transactions
from budget_dashboard.outputs import get_output
from budget_dashboard.utils import month_label, parse_month

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "BUDGET_DASHBOARD_LOG_LEVEL"


def _file_option(func):
    return click.option(
        '--file', 'files',
        multiple=True,
        type=click.Path(exists=True, dir_okay=False),
        help='Transaction spreadsheet (CSV, XLSX, XLS or YAML). Repeatable. '
             'Defaults to transactions_file from the config.'
    )(func)


def _date_option(name, help_text):
    return click.option(name, type=click.DateTime(formats=['%Y-%m-%d']), default=None, help=help_text)


def _snapshot(obj, files):
    cfg = obj['config']
    paths = list(files) or [cfg['transactions_file']]
    for path in paths:
        if not os.path.isfile(path):
            raise click.ClickException(f"Transaction file not found: {path}")
    try:
        txs = load_transactions(paths, cfg)
    except (ValueError, RuntimeError) as e:
        raise click.ClickException(str(e))
    logger.info("Loaded %d transaction(s) from %d file(s)", len(txs), len(paths))
    return txs


def _month_bounds(month):
    year, mon = parse_month(month)
    return date(year, mon, 1), date(year, mon, monthrange(year, mon)[1])


def _check_month(month):
    try:
        return month_label(month)
    except InvalidArgumentError as e:
        raise click.BadParameter(str(e), param_hint="'--month'")


@click.group()
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to config.yaml (vocabulary, budgets, file locations)'
)
@click.option(
    '--log-level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    help=f'Logging level (default: ${LOG_LEVEL_ENV}, then log_level from config)'
)
@click.pass_context
def main(ctx, config_path, log_level):
    """
    Summarize a budget spreadsheet: spending per category over a date range,
    and each budgeted subcategory's spend against its monthly ceiling.
    """
    try:
        cfg = load_config(config_path)
        vocabulary = vocabulary_from_config(cfg)
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid config: {e}")

    level = log_level or os.getenv(LOG_LEVEL_ENV) or cfg.get('log_level') or 'WARNING'
    logging.basicConfig(
        level=str(level).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {'config': cfg, 'vocabulary': vocabulary}


@main.command('categories')
@_file_option
@_date_option('--start', 'First day to include (default: earliest transaction)')
@_date_option('--end', 'Last day to include (default: latest transaction)')
@click.option('--category', 'categories', multiple=True,
              help='Category to include. Repeatable. Defaults to every category.')
@click.option('--drill', default=None, metavar='CATEGORY',
              help='Also break one category down by subcategory')
@click.option('--by-month', is_flag=True, default=False,
              help='Also list totals per calendar month and category')
@click.pass_obj
def categories_cmd(obj, files, start, end, categories, drill, by_month):
    """Total spend per category, highest first."""
    txs = _snapshot(obj, files)
    if not txs:
        click.echo("No transactions loaded.")
        return

    vocabulary = obj['vocabulary']
    if drill is not None and drill not in vocabulary:
        raise click.BadParameter(f"unknown category '{drill}'", param_hint="'--drill'")

    start = start.date() if start else min(tx.date for tx in txs)
    end = end.date() if end else max(tx.date for tx in txs)
    selected = list(categories) or vocabulary.categories
    try:
        totals = category_totals(txs, start, end, selected, vocabulary=vocabulary)
    except InvalidArgumentError as e:
        raise click.BadParameter(str(e), param_hint="'--start' / '--end'")

    click.echo(f"Spending {start.isoformat()} to {end.isoformat()}")
    if not totals:
        click.echo("No matching transactions.")
    else:
        for category, total in totals:
            click.echo(f"  {category:<12} {total:>10.2f}")
        click.echo(f"  {'Total':<12} {sum(t for _, t in totals):>10.2f}")

    if drill is not None:
        click.echo(f"{drill} by subcategory")
        subtotals = subcategory_totals(txs, start, end, drill, vocabulary=vocabulary)
        if not subtotals:
            click.echo("  No matching transactions.")
        for subcategory, total in subtotals:
            click.echo(f"  {subcategory:<16} {total:>10.2f}")

    if by_month:
        click.echo("By month")
        for row in monthly_totals(txs, start, end, selected, vocabulary=vocabulary):
            click.echo(f"  {row['month']}  {row['category']:<12} {row['total']:>10.2f}")


@main.command('budget')
@_file_option
@click.option('--month', required=True, help='Month to check, as YYYY-MM')
@click.option('--all', 'include_inactive', is_flag=True, default=False,
              help='Also list budgeted subcategories with no spend this month')
@click.pass_obj
def budget_cmd(obj, files, month, include_inactive):
    """Each budgeted subcategory's spend against its monthly ceiling."""
    month = _check_month(month)
    budgets = obj['config'].get('budgets') or {}
    if not budgets:
        click.echo("No budgets configured.")
        return

    txs = _snapshot(obj, files)
    try:
        rows = budget_status(
            txs, month, budgets,
            vocabulary=obj['vocabulary'],
            include_inactive=include_inactive,
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"Budget {month}")
    if not rows:
        click.echo("No budgeted spending this month.")
        return
    for row in rows:
        click.echo(
            f"  {row['subcategory']:<16} {row['total_spent']:>9.2f} / {row['budget']:>9.2f}"
            f"  {row['percent']:>4d}%  {row['remaining']:>9.2f}  {row['status']}"
        )


@main.command('report')
@_file_option
@click.option('--month', required=True, help='Month for the budget section, as YYYY-MM')
@_date_option('--start', 'First day for category totals (default: first day of --month)')
@_date_option('--end', 'Last day for category totals (default: last day of --month)')
@click.option(
    '--output', 'output_format',
    default='html',
    type=click.Choice(['csv', 'excel', 'html']),
    help='Output target: csv, excel, or html'
)
@click.pass_obj
def report_cmd(obj, files, month, start, end, output_format):
    """Write a full dashboard (categories, budget, raw rows) to a file."""
    month = _check_month(month)
    first, last = _month_bounds(month)
    start = start.date() if start else first
    end = end.date() if end else last

    cfg = obj['config']
    vocabulary = obj['vocabulary']
    txs = _snapshot(obj, files)
    selected = vocabulary.categories
    try:
        report = DashboardReport(
            label=month,
            start=start,
            end=end,
            month=month,
            category_totals=category_totals(txs, start, end, selected, vocabulary=vocabulary),
            budget_rows=budget_status(
                txs, month, cfg.get('budgets') or {},
                vocabulary=vocabulary,
                include_inactive=True,
            ),
            transactions=filter_transactions(txs, start=start, end=end, vocabulary=vocabulary),
        )
    except InvalidArgumentError as e:
        raise click.BadParameter(str(e), param_hint="'--start' / '--end'")
    except ValueError as e:
        raise click.ClickException(str(e))

    outputter = get_output(output_format, cfg)
    outputter.write(report)
    click.echo(
        f"Wrote {output_format.upper()} dashboard for {month} "
        f"({len(report.transactions)} transaction(s))."
    )


@main.command('validate')
@_file_option
@click.pass_context
def validate_cmd(ctx, files):
    """List rows whose labels are outside the vocabulary or whose split has no partner."""
    txs = _snapshot(ctx.obj, files)
    result = check_transactions(txs, ctx.obj['vocabulary'])
    for item in result.flagged:
        tx = item.transaction
        click.echo(f"{tx.date.isoformat()}  {tx.store:<20} {tx.amount:>9.2f}  {item.reason}")
    click.echo(f"{len(result.valid)} valid, {len(result.flagged)} flagged.")
    if not result.ok:
        ctx.exit(1)
