# bloodbank/utils.py

import pytz


def format_timestamp(timestamp, tz_name='UTC'):
    """Render a naive UTC timestamp as an ISO 8601 string.

    Args:
        timestamp: naive datetime stored in UTC
        tz_name: target timezone name, e.g. ``'Asia/Kolkata'``

    Returns:
        str: ISO formatted, timezone-aware timestamp, or None
    """
    if timestamp is None:
        return None
    target_tz = pytz.timezone(tz_name)
    return pytz.utc.localize(timestamp).astimezone(target_tz).isoformat()


def form_errors(form):
    """Flatten WTForms errors into a single readable line."""
    return '; '.join(
        f"{field}: {', '.join(str(message) for message in messages)}"
        for field, messages in form.errors.items()
    )
