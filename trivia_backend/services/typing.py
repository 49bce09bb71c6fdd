from datetime import datetime

def to_iso(value) -> str:
    # Stores hand back either an ISO string or a datetime; normalise to ISO
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
