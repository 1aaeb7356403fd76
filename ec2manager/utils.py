"""Utility functions for ec2manager."""

from datetime import datetime

from ec2manager.constants import SECONDS_PER_DAY, SECONDS_PER_HOUR, SECONDS_PER_MINUTE


def format_uptime(launch_time: datetime | None, now: datetime) -> str:
    """Format the time since launch as a compact duration.

    Parameters
    ----------
    launch_time : datetime | None
        Instance launch time (timezone-aware)
    now : datetime
        Reference time, in the same timezone convention as ``launch_time``

    Returns
    -------
    str
        "Nd Nh" from one day on, "Nh Nm" from one hour on, else "Nm";
        "-" when the launch time is unknown or in the future
    """
    if launch_time is None:
        return "-"

    seconds = int((now - launch_time).total_seconds())

    if seconds < 0:
        return "-"

    days = seconds // SECONDS_PER_DAY
    hours = (seconds % SECONDS_PER_DAY) // SECONDS_PER_HOUR
    minutes = (seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE

    if days > 0:
        return f"{days}d {hours}h"
    elif hours > 0:
        return f"{hours}h {minutes}m"
    else:
        return f"{minutes}m"
