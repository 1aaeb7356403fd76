"""Global constants for the ec2manager dashboard.

This module contains application-wide constants shared by the state machine,
the background workers and the terminal renderer.
"""

EVENT_QUEUE_MAX_SIZE = 10
"""Capacity of the event channel between background workers and the UI loop.

A full channel blocks the producing worker, never the UI loop.
"""

TUI_UPDATE_INTERVAL = 0.1
"""Interval in seconds between UI loop iterations.

Each iteration checks the refresh timer, drains at most one event and redraws.
"""

PAGE_STEP = 20
"""Number of rows moved by PageUp/PageDown in lists."""

STOP_WAIT_TIMEOUT_SECONDS = 300
"""Ceiling in seconds for waiting until an instance reports 'stopped'.

This is the only local timeout in the dashboard. Every other remote call
fails only on the provider's own error.
"""

STOP_POLL_INTERVAL_SECONDS = 2
"""Delay in seconds between instance state polls while waiting for a stop."""

DEFAULT_REFRESH_INTERVAL_SECONDS = 15
"""Default interval in seconds between periodic instance list refreshes."""

DEFAULT_INSTANCE_TYPE = "t3a.nano"
"""Instance type pre-filled in the type picker when none is configured."""

DEFAULT_CREDIT_SPECIFICATION = "standard"
"""CPU credit specification applied to burstable types after a resize."""

VALID_CREDIT_SPECIFICATIONS = ("standard", "unlimited")
"""CPU credit specifications accepted by EC2."""

BURSTABLE_FAMILY_PREFIX = "t"
"""Name prefix identifying burstable instance families (t2, t3, t3a, t4g)."""

DEFAULT_ARCHITECTURE = "x86_64"
"""Architecture assumed when an instance does not report one."""

FALLBACK_INSTANCE_TYPES = (
    "t3.nano",
    "t3.micro",
    "t3.small",
    "t3.medium",
    "t3.large",
    "t3a.nano",
    "t3a.micro",
    "t3a.small",
    "t3a.medium",
    "t2.nano",
    "t2.micro",
    "t2.small",
    "m5.large",
    "m5.xlarge",
    "c5.large",
)
"""Instance types offered when instance type metadata is unavailable.

All entries are x86_64 types.
"""

SPOT_PRODUCT_DESCRIPTION = "Linux/UNIX"
"""Product description used when querying spot price history."""

DEFAULT_REGION = "us-east-1"
"""Region used when neither the CLI nor the AWS environment provides one."""

CONFIG_FILE_NAME = ".ec2-instance-manager.yaml"
"""Name of the configuration file in the user's home directory."""

LOG_FILE_NAME = ".ec2-instance-manager.log"
"""Name of the log file in the user's home directory."""

EXIT_ERROR = 1
"""Exit code indicating a general application error."""

EXIT_CONFIG_ERROR = 2
"""Exit code indicating a configuration error."""

SECONDS_PER_MINUTE = 60
"""Number of seconds in one minute."""

SECONDS_PER_HOUR = 3600
"""Number of seconds in one hour."""

SECONDS_PER_DAY = 86400
"""Number of seconds in one day."""

UPTIME_REDRAW_INTERVAL_SECONDS = 30
"""Interval in seconds between redraws that only refresh the runtime column."""
