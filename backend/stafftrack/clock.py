"""
Horloge locale et bornes de journée.

Toutes les dates de pointage sont stockées en heure locale naïve (fuseau
settings.TIMEZONE). Les services appellent clock.now() / clock.today() plutôt que
datetime.now() : les tests remplacent clock.now pour figer le temps.
"""

from datetime import date, datetime, time, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

from stafftrack.config import settings


def local_timezone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def now() -> datetime:
    """Instant courant en heure locale naïve."""
    return datetime.now(local_timezone()).replace(tzinfo=None)


def today() -> date:
    return now().date()


def to_local(value: datetime) -> datetime:
    """Convertit un datetime aware en heure locale naïve ; un datetime naïf est supposé déjà local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(local_timezone()).replace(tzinfo=None)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Retourne (00:00:00, 23:59:59.999999) du jour donné."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def widened_bounds(start: date, end: date, days: int = 1) -> Tuple[datetime, datetime]:
    """Bornes [start - days, end + days] pour tolérer les enregistrements proches de minuit."""
    lower, _ = day_bounds(start - timedelta(days=days))
    _, upper = day_bounds(end + timedelta(days=days))
    return lower, upper


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Premier et dernier jour du mois."""
    first = date(year, month, 1)
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return first, last


def months_before(moment: datetime, months: int) -> datetime:
    """Même jour N mois calendaires plus tôt, à minuit (jour borné à la fin du mois cible)."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    _, last = month_bounds(year, month)
    return datetime(year, month, min(moment.day, last.day))
