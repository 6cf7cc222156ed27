"""Network configuration constants for the course application."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
SYNC_TIMEOUT_SECONDS: float = 20.0

# Sheet names understood by the remote spreadsheet endpoint.
SHEET_CONFIG: str = "ConfigApp"
SHEET_CONTENT: str = "ContentApp"
SHEET_QUESTION_BANK: str = "QuestionBankApp"
SHEET_COMMENTS: str = "CommentsApp"
SHEET_RATINGS: str = "RatingsApp"
SHEET_EXAM_RESULTS: str = "ExamResults"
SHEET_LIVE_EVENT: str = "LiveEventApp"
