"""Sample Data Setup Script for the QuickQR analytics dashboard.

Inserts synthetic usage events spread over the last 14 days so the admin
dashboard has something to show during development.

Usage:
    python scripts/seed_sample_events.py seed --events 300 --sessions 40
"""

import hashlib
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from quickqr.lib.database import get_session_factory, is_database_configured
from quickqr.models.usage_event import EventKind, UsageEvent

# Load environment variables from .env.local
env_path = Path(__file__).parent.parent / '.env.local'
console = Console()
if env_path.exists():
  load_dotenv(env_path)
  console.print(f'[dim]Loaded environment from {env_path}[/dim]')
else:
  console.print(f'[dim]No .env.local file found at {env_path}, using system environment[/dim]')

SAMPLE_SESSION_PREFIX = 'sample-'
SAMPLE_USER_AGENT = 'quickqr-seed/0.1'
SAMPLE_DESTINATIONS = [
  'https://example.com/',
  'https://github.com/quickqr',
  'https://docs.python.org/3/',
  'https://news.ycombinator.com/',
  'https://portfolio.example.org/about',
  'https://shop.example.net/sale?ref=qr',
]
SAMPLE_PURPOSES = [None, 'Campaign', 'Resume', 'Portfolio', 'Event flyer']


def _sample_event(session_id: str, now: datetime, days: int) -> UsageEvent:
  created_at = now - timedelta(seconds=random.randint(0, days * 24 * 3600 - 1))
  kind = random.choices(list(EventKind), weights=[5, 3, 2])[0]
  destination = random.choice(SAMPLE_DESTINATIONS)

  if kind is EventKind.QR_GENERATED:
    payload = {
      'destinationUrl': destination,
      'purpose': random.choice(SAMPLE_PURPOSES),
      'size': 320,
      'margin': 2,
    }
  elif kind is EventKind.QR_DOWNLOADED:
    payload = {'destinationUrl': destination, 'format': random.choice(['png', 'svg'])}
  else:
    payload = {}

  return UsageEvent(
    id=uuid.uuid4(),
    created_at=created_at,
    event_type=kind.value,
    session_id=session_id,
    payload=payload,
    ip_hash=hashlib.sha256(session_id.encode('utf-8')).hexdigest(),
    user_agent=SAMPLE_USER_AGENT,
    referrer=None,
  )


def _require_database():
  if not is_database_configured():
    console.print('[red]Error: ANALYTICS_DATABASE_URL is not set[/red]')
    console.print('[yellow]Set it in .env.local, then run: alembic upgrade head[/yellow]')
    sys.exit(1)


@click.group()
def cli():
  """Manage sample analytics events."""
  pass


@cli.command()
@click.option('--events', default=200, type=int, help='Number of sample events')
@click.option('--sessions', default=25, type=int, help='Number of distinct sample sessions')
@click.option('--days', default=14, type=int, help='Spread events over this many days')
@click.option('--seed', default=None, type=int, help='Random seed for reproducible data')
def seed(events, sessions, days, seed):
  """Insert sample events."""
  _require_database()
  if events < 1 or sessions < 1 or days < 1:
    console.print('[red]Error: --events, --sessions and --days must be positive[/red]')
    sys.exit(1)

  if seed is not None:
    random.seed(seed)

  console.print('\n[bold]Creating sample analytics events...[/bold]')
  session_ids = [f'{SAMPLE_SESSION_PREFIX}{uuid.uuid4()}' for _ in range(sessions)]
  now = datetime.now(timezone.utc)

  try:
    SessionFactory = get_session_factory()
    with SessionFactory() as session:
      console.print(f'[cyan]1. Inserting {events} events for {sessions} sessions...[/cyan]')
      session.add_all(_sample_event(random.choice(session_ids), now, days) for _ in range(events))
      session.commit()

      console.print('[cyan]2. Verifying data...[/cyan]')
      rows = session.execute(
        select(UsageEvent.event_type, func.count())
        .where(UsageEvent.session_id.like(f'{SAMPLE_SESSION_PREFIX}%'))
        .group_by(UsageEvent.event_type)
      ).all()

    table_display = Table(title='Sample events by kind')
    table_display.add_column('Kind', style='cyan')
    table_display.add_column('Rows', justify='right')
    for event_type, count in sorted(rows):
      table_display.add_row(event_type, str(count))
    console.print(table_display)

    console.print('\n[green]✓ Sample analytics events created successfully![/green]')
    console.print('[dim]Open /admin to view the dashboard.[/dim]')

  except SQLAlchemyError as e:
    console.print(f'[red]Database error: {e}[/red]')
    console.print('[yellow]Run alembic migrations first: alembic upgrade head[/yellow]')
    sys.exit(1)


if __name__ == '__main__':
  cli()
