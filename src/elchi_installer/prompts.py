"""Interactive yes/no prompts."""

import questionary

from elchi_installer.styles import PROMPT_STYLE, QMARK


def confirm(question: str) -> bool:
    """Ask a yes/no question that defaults to No.

    Args:
        question: The question to display.

    Returns:
        True only if the operator explicitly answered yes. A cancelled
        prompt (Ctrl-C, closed stdin) counts as No.

    """
    answer: bool | None = questionary.confirm(
        question,
        default=False,
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).ask()
    return bool(answer)
