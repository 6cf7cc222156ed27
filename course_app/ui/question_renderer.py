"""Preview rendering for exam questions and lesson descriptions."""

from __future__ import annotations

from course_app.core.markdown_renderer import renderer


def render_question_with_options(
    question_text: str,
    options: list[str],
    correct_answer: int | None = None,
    font_size: int = 14,
) -> str:
    """Render a question with its options as an HTML document.

    The correct option, when known, is marked so authors can check the key
    before saving. Learners never receive this rendering.
    """
    markdown_lines = [question_text.strip() or "(No question text)", ""]
    for idx, option in enumerate(options):
        letter = chr(ord("A") + idx)
        marker = " ✔" if idx == correct_answer else ""
        markdown_lines.append(f"**{letter}.** {option or '(empty)'}{marker}")
    markdown = "\n\n".join(markdown_lines)
    return renderer.render_full_document(markdown, font_size=font_size)


def render_lesson_description(description: str, font_size: int = 14) -> str:
    return renderer.render_full_document(description, font_size=font_size)
