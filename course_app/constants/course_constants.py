"""Course-level defaults for progression, feedback and certificates."""

DEFAULT_SCHOOL_NAME: str = "Online Learning Platform"
DEFAULT_SUPPORT_EMAIL: str = "support@admin.com"
DEFAULT_SUPPORT_PHONE: str = "(00) 00000-0000"
COURSE_HOURS_LABEL: str = "40 Hours"
COMMENT_RETENTION_DAYS: int = 30
MIN_RATING_STARS: int = 1
MAX_RATING_STARS: int = 5
