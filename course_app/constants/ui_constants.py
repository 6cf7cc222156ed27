"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "CourseQt Admin Console"
PLACEHOLDER_QUESTION: str = "Enter the question text (supports Markdown + LaTeX)."
PLACEHOLDER_LESSON_DESCRIPTION: str = "Describe what this lesson covers (supports Markdown)."

MODE_BUTTON_BANK: str = "Question Bank"
MODE_BUTTON_OUTLINE: str = "Course Outline"
MODE_BUTTON_IMPORT: str = "Import Questions"
MODE_BUTTON_EXPORT: str = "Export Questions"
MODE_BUTTON_SYNC: str = "Sync Now"

BANK_INSERT_BUTTON: str = "Add New Question"
BANK_SAVE_BUTTON: str = "Save Question"
BANK_DELETE_BUTTON: str = "Delete Question"
BANK_PREV_BUTTON: str = "Show Previous Question"
BANK_NEXT_BUTTON: str = "Show Next Question"

OUTLINE_ADD_MODULE_BUTTON: str = "Add Module"
OUTLINE_SAVE_MODULE_BUTTON: str = "Save Module"
OUTLINE_ADD_LESSON_BUTTON: str = "Add Lesson"
OUTLINE_SAVE_LESSON_BUTTON: str = "Save Lesson"
OUTLINE_DELETE_LESSON_BUTTON: str = "Delete Lesson"

IMPORT_DIALOG_TITLE: str = "Select question bank file"
IMPORT_FILE_FILTER: str = "Question files (*.txt);;All files (*.*)"
EXPORT_DIALOG_TITLE: str = "Save question bank to file"
EXPORT_FILE_FILTER: str = "Question files (*.txt);;All files (*.*)"

EMPTY_BANK_MESSAGE: str = "The question bank is empty. Add or import questions first."
SYNC_DISABLED_MESSAGE: str = "No sync endpoint configured. Set COURSEQT_SYNC_URL to enable sync."
MODE_BUTTON_INBOX: str = "Comments Inbox"
INBOX_MARK_READ_BUTTON: str = "Mark All as Read"
INBOX_REFRESH_INTERVAL_MS: int = 5000
MODE_BUTTON_LIVE: str = "Live Class"
LIVE_EVENT_LINK_HINT: str = "YouTube links play inside the learner app. Meet or Zoom links open in a new tab."
