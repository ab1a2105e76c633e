"""
Calcul de la semaine de devoirs courante (lundi 00:00 → dimanche 23:59:59.999999).
"""

from datetime import datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings


def get_current_week_range(now: Optional[datetime] = None, tz: Optional[str] = None) -> tuple[datetime, datetime]:
    """
    Retourne (week_start, week_end) de la semaine contenant `now`, dans le fuseau `tz`
    (DEFAULT_TZ par défaut). Un `now` naïf est interprété dans ce fuseau.
    """
    zone = ZoneInfo(tz or settings.DEFAULT_TZ)
    if now is None:
        now = datetime.now(zone)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=zone)
    else:
        now = now.astimezone(zone)

    monday = now.date() - timedelta(days=now.weekday())
    week_start = datetime.combine(monday, time.min, tzinfo=zone)
    week_end = datetime.combine(monday + timedelta(days=6), time.max, tzinfo=zone)
    return week_start, week_end
