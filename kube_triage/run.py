from __future__ import annotations
import click
import os
import time
from dataclasses import replace
from .config import DEFAULT_CONFIG_FILE, default_config, load_config, validate_config
from .errors import ListingParseError, TriageError
from .kube.reader import build_reader
from .triage.engine import TriageEngine, TriageOptions, OutcomeStatus
from .triage.limits_cache import LimitsCache
from .triage.pipeline import SORT_FIELDS
from .triage.predicate import PredicateError, compile_predicate
from .triage.rows import ROW_FIELDS
from .reporting.base import get_generator, get_report_types
from .reporting import table_report, csv_report, json_report, excel_report  # noqa: F401 registers formats
from .util import logging as log

_THRESHOLD_OPTIONS = {
    'mem_warn': 'mem_pct_warn',
    'mem_crit': 'mem_pct_crit',
    'cpu_warn': 'cpu_pct_warn',
    'cpu_crit': 'cpu_pct_crit',
    'cpu_m_warn': 'cpu_m_warn',
    'cpu_m_crit': 'cpu_m_crit',
    'mem_mi_warn': 'mem_mi_warn',
    'mem_mi_crit': 'mem_mi_crit',
}

def _load_app_config(path):
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_FILE):
            return default_config()
        path = DEFAULT_CONFIG_FILE
    try:
        return load_config(path)
    except (FileNotFoundError, ValueError, TypeError) as e:
        raise click.ClickException(str(e))

@click.group(add_help_option=False)
@click.option('--config', default=None, help=f'Config file path (default: {DEFAULT_CONFIG_FILE} if present)')
@click.pass_context
def cli(ctx, config):
    """Container resource triage CLI"""
    ctx.ensure_object(dict)
    ctx.obj['config'] = config

def _build_options(cfg, namespace, containers, where, sort, descending, totals, cache_max_age, parallel, thresholds_override):
    tri = cfg.triage
    try:
        predicate = compile_predicate(list(where))
    except PredicateError as e:
        raise click.BadParameter(str(e), param_hint='--where')
    overrides = {}
    for opt, field in _THRESHOLD_OPTIONS.items():
        if thresholds_override.get(opt) is not None:
            overrides[field] = thresholds_override[opt]
    opts = TriageOptions(
        namespace=namespace or tri.namespace,
        containers=list(containers) or list(tri.containers),
        predicate=predicate,
        sort_field=sort or tri.sort,
        descending=tri.descending if descending is None else descending,
        include_totals=tri.include_totals if totals is None else totals,
        cache_max_age_minutes=cache_max_age or tri.limits_cache_max_age_minutes,
        thresholds=replace(cfg.thresholds, **overrides),
        parallel_fetch=tri.parallel_fetch if parallel is None else parallel,
    )
    try:
        opts.validate()
    except ValueError as e:
        raise click.ClickException(str(e))
    return opts

def _emit(outcome, generator, out, diagnostic):
    if diagnostic and outcome.dropped_lines:
        click.echo(f'Dropped {len(outcome.dropped_lines)} unparseable usage line(s):', err=True)
        for line in outcome.dropped_lines:
            click.echo(f'  {line}', err=True)
    if outcome.status is not OutcomeStatus.OK:
        click.echo(outcome.message)
        return
    generator.generate(outcome, out)
    if out:
        click.echo(f'Wrote {generator.type_name} output to {out}')

@cli.command(add_help_option=False)
@click.option('-n', '--namespace', help='Namespace to triage (default from config)')
@click.option('-c', '--container', 'containers', multiple=True, help='Container name glob; repeat for multiple')
@click.option('-w', '--where', multiple=True, help="Row filter 'FIELD OP VALUE', e.g. 'mem_pct >= 90'; repeat to AND")
@click.option('--sort', type=click.Choice(SORT_FIELDS), help='Secondary sort field (rows always group by container)')
@click.option('--asc/--desc', 'ascending', default=None, help='Sort direction for --sort')
@click.option('--totals/--no-totals', default=None, help='Append a totals row')
@click.option('--format', 'output_format', default='table', help='Output format. Use --list-formats to view all.')
@click.option('--out', required=False, help='Write output to this file instead of stdout')
@click.option('--cache-max-age', type=click.IntRange(1, 1440), help='Limits cache max age in minutes')
@click.option('--reader', type=click.Choice(['api', 'kubectl']), help='How to query the cluster')
@click.option('--parallel/--sequential', default=None, help='Fetch pods, limits and usage concurrently')
@click.option('--mem-warn', type=float, help='Memory percent of limit for warning')
@click.option('--mem-crit', type=float, help='Memory percent of limit for critical')
@click.option('--cpu-warn', type=float, help='CPU percent of limit for warning')
@click.option('--cpu-crit', type=float, help='CPU percent of limit for critical')
@click.option('--cpu-m-warn', type=int, help='CPU millicores for warning when no CPU limit is set')
@click.option('--cpu-m-crit', type=int, help='CPU millicores for critical when no CPU limit is set')
@click.option('--mem-mi-warn', type=int, help='Memory Mi for warning (0 disables)')
@click.option('--mem-mi-crit', type=int, help='Memory Mi for critical (0 disables)')
@click.option('--diagnostic', is_flag=True, help='Show dropped usage lines and undecodable payloads')
@click.option('--watch', type=click.FloatRange(min=1), help='Repeat every N seconds, reusing the limits cache')
@click.option('--count', type=click.IntRange(min=0), default=0, help='Iterations in watch mode (0 = until interrupted)')
@click.option('--list-formats', is_flag=True, help='List available output formats and exit')
@click.pass_context
def top(ctx, namespace, containers, where, sort, ascending, totals, output_format, out, cache_max_age, reader,
        parallel, diagnostic, watch, count, list_formats, **thresholds_override):
    """Join live usage with limits and pod status into a triage table."""
    if list_formats:
        click.echo('Available output formats:')
        for t in get_report_types():
            click.echo(f'  {t}')
        return
    cfg = _load_app_config(ctx.obj['config'])
    if reader:
        cfg.cluster = replace(cfg.cluster, reader=reader)
        try:
            validate_config(cfg)
        except ValueError as e:
            raise click.ClickException(str(e))
    log.configure_logging(cfg.logging.level, cfg.logging.format)
    try:
        generator = get_generator(output_format)
    except ValueError as e:
        raise click.ClickException(str(e))
    if generator.requires_out and not out:
        raise click.ClickException(f'--format {output_format} requires --out')
    if watch and out:
        raise click.ClickException('--out cannot be combined with --watch')
    descending = None if ascending is None else not ascending
    opts = _build_options(cfg, namespace, containers, where, sort, descending, totals, cache_max_age, parallel, thresholds_override)

    try:
        cluster_reader = build_reader(cfg.cluster)
    except TriageError as e:
        raise click.ClickException(str(e))
    engine = TriageEngine(cluster_reader, LimitsCache(cluster_reader))
    iteration = 0
    while True:
        iteration += 1
        try:
            outcome = engine.run(opts)
        except ListingParseError as e:
            if diagnostic and e.payload:
                click.echo(f'Undecodable payload:\n{e.payload}', err=True)
            raise click.ClickException(str(e))
        except TriageError as e:
            raise click.ClickException(str(e))
        _emit(outcome, generator, out, diagnostic)
        if not watch or (count and iteration >= count):
            break
        time.sleep(watch)
        click.echo('')

@cli.command(add_help_option=False)
def fields():
    """List row fields usable with --sort and --where."""
    click.echo('Row fields (--where):')
    for name in ROW_FIELDS:
        marker = ' (sortable)' if name in SORT_FIELDS else ''
        click.echo(f'  {name}{marker}')

@cli.command('help', add_help_option=False)
@click.argument('command', required=False)
@click.pass_context
def help_cmd(ctx, command):
    """Show context-driven help for a command, or list all commands."""
    group = ctx.parent.command if ctx.parent else ctx.command
    if not command:
        click.echo("Available commands:")
        for cmd_name in group.commands:
            click.echo(f"  {cmd_name}")
        click.echo("\nRun 'kube-triage help <command>' for details.")
        return
    cmd = group.commands.get(command)
    if not cmd:
        click.echo(f"Unknown command: {command}")
        click.echo("Run 'kube-triage help' to list available commands.")
        return
    with click.Context(cmd) as cmd_ctx:
        click.echo(cmd.get_help(cmd_ctx))

if __name__ == '__main__':
    cli()
