"""Jinja2 template environment for server-rendered pages."""

from datetime import date, datetime
from pathlib import Path

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / 'templates'

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_day(value: date) -> str:
  """'Oct 3' style label for trend bars."""
  return f'{value.strftime("%b")} {value.day}'


def format_datetime(value: datetime) -> str:
  """'Oct 3, 2026, 4:05 PM' in the server time zone."""
  local = value.astimezone()
  hour = local.hour % 12 or 12
  meridiem = 'AM' if local.hour < 12 else 'PM'
  return f'{local.strftime("%b")} {local.day}, {local.year}, {hour}:{local.minute:02d} {meridiem}'


templates.env.filters['format_day'] = format_day
templates.env.filters['format_datetime'] = format_datetime
