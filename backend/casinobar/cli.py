# Overview: Flask CLI command groups for venue bootstrap, shift inspection and reports.

# backend/casinobar/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Venue bootstrap:
# - python -m flask venues seed [--demo]
#   Idempotent: creates the default venues; --demo adds sample beers and a worker.
# - python -m flask venues list
#   List venues with product and worker counts.
#
# Shift inspection:
# - python -m flask shifts list --venue spezia [--active] [--limit 20] [--since 2026-03-01T00:00:00Z]
#   List shifts, newest first. --since keeps shifts started at or after an ISO timestamp.
#
# Reports:
# - python -m flask reports summary --venue spezia --period week
#   Revenue, cost, profit and cash difference for a period.

import click
from flask.cli import with_appcontext

from .services import venue_service
from .services.cash_service import format_cop
from .services.storage import SqlLedgerStore, StorageError
from .services.venue_service import VenueContext
from .validation import ValidationError
from .time_utils import parse_iso_datetime, to_utc_z


@click.group('venues')
def venues_group():
    """Venue bootstrap commands."""


@venues_group.command('seed')
@click.option('--demo', is_flag=True, help='Also add sample beers and a demo worker')
@with_appcontext
def seed_venues_cli(demo):
    """
    Create the default venues.

    Example:
        flask venues seed
        flask venues seed --demo
    """
    try:
        venues = venue_service.seed_venues(SqlLedgerStore(), demo=demo)
    except StorageError as e:
        raise click.ClickException(str(e))

    for venue in venues:
        click.echo(f"PASS Venue ready: {venue.name} (ID: {venue.id})")
    if demo:
        click.echo("Demo products and worker added where the venue had no products.")


@venues_group.command('list')
@with_appcontext
def list_venues_cli():
    """List all venues."""
    store = SqlLedgerStore()
    venues = venue_service.list_venues(store)

    if not venues:
        click.echo("No venues found. Run: flask venues seed")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<20} {'Name':<25} {'Products':<10} {'Workers'}")
    click.echo("="*70)
    for venue in venues:
        products = len(store.list_products(venue.id))
        workers = len(store.list_workers(venue.id))
        click.echo(f"{venue.id:<20} {venue.name:<25} {products:<10} {workers}")
    click.echo("="*70 + "\n")


@click.group('shifts')
def shifts_group():
    """Shift inspection commands."""


@shifts_group.command('list')
@click.option('--venue', 'venue_id', required=True, help='Venue ID')
@click.option('--active', 'active_only', is_flag=True, help='Only open shifts')
@click.option('--limit', default=20, type=int, help='Max results')
@click.option('--since', default=None, help='Only shifts started at or after this ISO timestamp (UTC if no offset)')
@with_appcontext
def list_shifts_cli(venue_id, active_only, limit, since):
    """
    List shifts for a venue, newest first.

    Example:
        flask shifts list --venue spezia
        flask shifts list --venue spezia --active
        flask shifts list --venue spezia --since 2026-03-01T00:00:00-05:00
    """
    try:
        since_dt = parse_iso_datetime(since)
    except ValueError:
        raise click.ClickException(f"Invalid --since timestamp: {since}")

    try:
        ctx = VenueContext(venue_id)
    except ValidationError as e:
        raise click.ClickException(str(e))

    shifts = ctx.shifts.active_shifts() if active_only else ctx.shifts.list_shifts()
    if since_dt is not None:
        shifts = [s for s in shifts if s.start_time >= since_dt]
    shifts = shifts[:limit]

    if not shifts:
        click.echo("No shifts found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<34} {'Worker':<20} {'Status':<8} {'Started':<22} {'Hours':<6} {'Difference'}")
    click.echo("="*100)
    for shift in shifts:
        difference = shift.cash_difference
        click.echo(
            f"{shift.id:<34} {shift.worker_name[:20]:<20} {shift.status:<8} "
            f"{to_utc_z(shift.start_time):<22} {ctx.shifts.shift_duration(shift):<6} "
            f"{format_cop(difference) if difference is not None else '-'}"
        )
    click.echo("="*100 + "\n")


@click.group('reports')
def reports_group():
    """Sales report commands."""


@reports_group.command('summary')
@click.option('--venue', 'venue_id', required=True, help='Venue ID')
@click.option('--period', default='all', type=click.Choice(['today', 'week', 'month', 'all']))
@with_appcontext
def report_summary_cli(venue_id, period):
    """
    Print period totals for a venue.

    Example:
        flask reports summary --venue spezia --period week
    """
    try:
        report = VenueContext(venue_id).sales_report(period)
    except ValidationError as e:
        raise click.ClickException(str(e))

    summary = report["summary"]
    click.echo(f"\nSales for {venue_id} ({period})")
    click.echo("-"*40)
    click.echo(f"Shifts:          {summary['shift_count']}")
    click.echo(f"Units sold:      {summary['total_units']}")
    click.echo(f"Revenue:         {format_cop(summary['total_revenue'])}")
    click.echo(f"Cost:            {format_cop(summary['total_cost'])}")
    click.echo(f"Profit:          {format_cop(summary['total_profit'])}")
    click.echo(f"Margin:          {summary['margin_percent']}%")
    click.echo(f"Cash difference: {format_cop(summary['total_cash_difference'])}")
    click.echo("")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(venues_group)
    app.cli.add_command(shifts_group)
    app.cli.add_command(reports_group)
