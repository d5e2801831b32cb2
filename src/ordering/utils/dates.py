"""Datetime helpers shared by coupon windows and order filters."""

from datetime import UTC


def as_naive_utc(moment):
    """Compare datetimes regardless of whether the store kept their tzinfo."""
    if moment is None:
        return None
    if moment.tzinfo is not None:
        return moment.astimezone(UTC).replace(tzinfo=None)
    return moment
