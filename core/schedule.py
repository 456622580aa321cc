# =============================================================================
# EVMOS UPGRADE HELPER - UPGRADE SCHEDULING
# =============================================================================
#
# Default upgrade time planning and the human-readable time string used in
# the proposal.
#
# RULES:
# - Upgrades happen at 16:00 UTC
# - The earliest day is the end of the voting period
# - If called after 14:00 UTC, or voting ends at/after 16:00, move one day
# - Never on a weekend: Saturday -> Monday, Sunday -> Monday
#
# =============================================================================

from datetime import datetime, time, timedelta, timezone

UPGRADE_HOUR_UTC = 16

MONTHS = (
    "", "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def planned_upgrade_time(voting_period: timedelta, now: datetime) -> datetime:
    """
    Calculate the default upgrade time for a proposal submitted at `now`.

    Args:
        voting_period: Voting period of the network
        now: Current time (UTC)

    Returns:
        Upgrade time at 16:00 UTC on a weekday
    """
    end_of_voting = now + voting_period

    if now.hour > 14 or end_of_voting.hour >= UPGRADE_HOUR_UTC:
        end_of_voting += timedelta(days=1)

    if end_of_voting.weekday() == 5:
        end_of_voting += timedelta(days=2)
    elif end_of_voting.weekday() == 6:
        end_of_voting += timedelta(days=1)

    return datetime.combine(
        end_of_voting.date(), time(UPGRADE_HOUR_UTC, 0), tzinfo=timezone.utc
    )


def is_valid_upgrade_time(upgrade_time: datetime) -> bool:
    """An upgrade time is valid if it does not fall on a weekend."""
    return upgrade_time.weekday() < 5


def format_upgrade_time(upgrade_time: datetime) -> str:
    """
    Render the upgrade time as shown in the proposal.

    Example: "4PM UTC on Wed., February 1., 2023"
    """
    hour = upgrade_time.hour % 12 or 12
    suffix = "PM" if upgrade_time.hour >= 12 else "AM"
    return (
        f"{hour}{suffix} UTC on {WEEKDAYS[upgrade_time.weekday()]}., "
        f"{MONTHS[upgrade_time.month]} {upgrade_time.day}., {upgrade_time.year}"
    )


def parse_upgrade_time(value: str) -> datetime:
    """
    Parse a user supplied upgrade time.

    Accepts ISO 8601 ("2024-01-15T16:00:00Z") or a plain date
    ("2024-01-15"), which is taken as 16:00 UTC. Naive times are UTC.

    Raises:
        ValueError: If the value cannot be parsed
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    if len(value) == 10:
        day = datetime.strptime(value, "%Y-%m-%d").date()
        return datetime.combine(day, time(UPGRADE_HOUR_UTC, 0), tzinfo=timezone.utc)

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
