from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current time for timestamp columns."""
    return datetime.now(timezone.utc)
