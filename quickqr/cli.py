"""QuickQR command-line client.

Generates QR codes locally and reports the same anonymous usage events as
the web page (page_visit, qr_generated, qr_downloaded) when an API URL is
configured.

Usage:
    quickqr generate example.com --format both --output-dir ./out
    quickqr session
"""

import asyncio
import os
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from quickqr.client.emitter import EventEmitter
from quickqr.client.session import JsonFileStore, load_session_id
from quickqr.lib.errors import InvalidLinkError, QRRenderError
from quickqr.lib.links import require_url
from quickqr.models.usage_event import EventKind
from quickqr.services.qr_service import QRRenderer

console = Console()

EXIT_RENDER_FAILED = 1
EXIT_INVALID_LINK = 2
OUTPUT_BASENAME = 'quickqr'
FORMATS = ('png', 'svg')


def _write_outputs(rendered, formats: tuple[str, ...], output_dir: Path) -> list[Path]:
  output_dir.mkdir(parents=True, exist_ok=True)
  written = []
  for fmt in formats:
    path = output_dir / f'{OUTPUT_BASENAME}.{fmt}'
    if fmt == 'svg':
      path.write_text(rendered.svg, encoding='utf-8')
    else:
      path.write_bytes(rendered.png_bytes)
    written.append(path)
  return written


async def run_generate(
  raw_url: str,
  purpose: str | None,
  formats: tuple[str, ...],
  output_dir: Path,
  emitter: EventEmitter,
  session_id: str,
) -> int:
  """Normalize, render, write files and emit usage events.

  Returns:
      Process exit code (0 on success)
  """
  try:
    emitter.emit(EventKind.PAGE_VISIT, session_id, {})

    try:
      normalized = require_url(raw_url)
    except InvalidLinkError as e:
      console.print(f'[red]{e}[/red]')
      return EXIT_INVALID_LINK

    renderer = QRRenderer()
    try:
      rendered = await renderer.render(normalized)
    except QRRenderError as e:
      console.print(f'[red]{e}[/red]')
      return EXIT_RENDER_FAILED

    emitter.emit(
      EventKind.QR_GENERATED,
      session_id,
      {
        'destinationUrl': rendered.url,
        'purpose': purpose or None,
        'size': rendered.size,
        'margin': rendered.margin,
      },
    )

    written = _write_outputs(rendered, formats, output_dir)
    for path in written:
      emitter.emit(
        EventKind.QR_DOWNLOADED,
        session_id,
        {'destinationUrl': rendered.url, 'format': path.suffix.lstrip('.')},
      )

    table = Table(title='QR code generated')
    table.add_column('Field', style='cyan')
    table.add_column('Value')
    table.add_row('Link', rendered.url)
    table.add_row('Size', f'{rendered.size}px, margin {rendered.margin}')
    for path in written:
      table.add_row(path.suffix.lstrip('.').upper(), str(path))
    console.print(table)
    return 0
  finally:
    await emitter.aclose()


@click.group()
def cli():
  """Turn links into QR codes (PNG and SVG)."""
  load_dotenv('.env')
  load_dotenv('.env.local')


@cli.command()
@click.argument('url')
@click.option('--purpose', default=None, help='Optional note stored with the usage event')
@click.option(
  '--format',
  'fmt',
  type=click.Choice(['png', 'svg', 'both']),
  default='both',
  show_default=True,
  help='Which rendition(s) to write',
)
@click.option(
  '--output-dir',
  type=click.Path(file_okay=False, path_type=Path),
  default=Path('.'),
  show_default=True,
  help='Directory for quickqr.png / quickqr.svg',
)
@click.option('--api-url', default=None, help='QuickQR server for usage events (QUICKQR_API_URL)')
@click.option(
  '--state-file',
  type=click.Path(dir_okay=False, path_type=Path),
  default=None,
  help='Session state file (QUICKQR_STATE_FILE)',
)
def generate(url, purpose, fmt, output_dir, api_url, state_file):
  """Render URL as a QR code and write it to disk."""
  if purpose is not None and len(purpose) > 200:
    raise click.BadParameter('must be at most 200 characters', param_hint='--purpose')

  session_id = load_session_id(JsonFileStore(state_file))
  emitter = EventEmitter(api_url or os.getenv('QUICKQR_API_URL'))
  formats = FORMATS if fmt == 'both' else (fmt,)

  exit_code = asyncio.run(run_generate(url, purpose, formats, output_dir, emitter, session_id))
  if exit_code:
    sys.exit(exit_code)


@cli.command()
@click.option(
  '--state-file',
  type=click.Path(dir_okay=False, path_type=Path),
  default=None,
  help='Session state file (QUICKQR_STATE_FILE)',
)
def session(state_file):
  """Print the anonymous session identifier (created on first use)."""
  console.print(load_session_id(JsonFileStore(state_file)))


def main():
  cli()


if __name__ == '__main__':
  main()
