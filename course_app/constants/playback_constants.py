"""Anti-skip playback constants."""

# Slack between consecutive position reports, larger than the player's report interval.
DEFAULT_SEEK_TOLERANCE_SECONDS: float = 1.0
LOCK_NOTICE_SECONDS: float = 3.0
