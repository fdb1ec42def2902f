"""
CLI-wide settings set by the top-level callback.

Values left as None fall back to the role configuration from the environment.
"""

from pipetunnel.models.enums import LogLevel

LOG_LEVEL: LogLevel | None = None
