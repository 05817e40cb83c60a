from datetime import date, datetime
import pytz

from app.config import settings

LOCAL_TZ = pytz.timezone(settings.TIMEZONE)


def get_local_now():
    """Get current time in the restaurant timezone"""
    return datetime.now(LOCAL_TZ)


def get_local_today() -> date:
    return get_local_now().date()


def to_local_tz(dt):
    """Convert datetime to the restaurant timezone"""
    if dt.tzinfo is None:
        # Naive datetime, assume UTC
        dt = pytz.utc.localize(dt)
    return dt.astimezone(LOCAL_TZ)


def local_midnight(day: date):
    """Timezone-aware 00:00 of the given calendar day"""
    return LOCAL_TZ.localize(datetime(day.year, day.month, day.day))


def local_end_of_day(day: date):
    return LOCAL_TZ.localize(datetime(day.year, day.month, day.day, 23, 59, 59, 999999))
