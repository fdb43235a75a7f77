from datetime import datetime, timezone


def utcnow() -> datetime:
    """Текущее время в UTC без tzinfo (так хранится в БД)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
