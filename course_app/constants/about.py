"""Static metadata describing CourseQt."""

APP_NAME = "CourseQt"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "CourseQt is a video course platform built with Qt and FastAPI. "
    "Author lessons and a question bank here; learners watch lessons and take the final exam from the web."
)

HELP_TEXT = (
    "Build the final exam question bank directly in the console, one question at a time, "
    "or import a .txt file (useful with AI tools) using this format:\n\n"
    "Q: Which layer of the OSI model routes packets?\n"
    "A: Physical\nB: Network\nC: Session\nD: Application\n"
    "CORRECT: B\n\n"
    "Q: What does $2^{10}$ equal?\n"
    "A: 1000\nB: 512\nC: 1024\nD: 2048\n"
    "CORRECT: C\n\n"
    "Students need at least 20 questions in the bank before they can take the exam. "
    "Administrators can test the exam with a single question."
)
