"""
Helper utility functions
"""
from bson import ObjectId
from typing import Any, Dict, List, Optional
from datetime import date, datetime, timedelta
import pytz

from frontdesk.config.settings import settings

LOCAL_TZ = pytz.timezone(settings.TIMEZONE)


def money(value: Any) -> float:
    """Round a currency amount to paise"""
    return round(float(value or 0), 2)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes from the DB as UTC"""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def local_day_bounds(day: date):
    """Return the UTC [start, end) instants of a calendar day in the property's timezone"""
    start = LOCAL_TZ.localize(datetime(day.year, day.month, day.day))
    end = LOCAL_TZ.localize(datetime.combine(day + timedelta(days=1), datetime.min.time()))
    return start.astimezone(pytz.utc), end.astimezone(pytz.utc)


def serialize_doc(doc: Optional[Dict]) -> Optional[Dict]:
    """Convert MongoDB document to JSON-serializable format"""
    if doc is None:
        return None

    doc = dict(doc)
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            doc[key] = str(value)
        elif isinstance(value, datetime):
            doc[key] = as_utc(value).astimezone(LOCAL_TZ).isoformat()
        elif isinstance(value, list):
            doc[key] = [serialize_doc(item) if isinstance(item, dict) else item for item in value]
        elif isinstance(value, dict):
            doc[key] = serialize_doc(value)

    return doc


def serialize_docs(docs: List[Dict]) -> List[Dict]:
    """Convert list of MongoDB documents to JSON-serializable format"""
    return [serialize_doc(doc) for doc in docs]
