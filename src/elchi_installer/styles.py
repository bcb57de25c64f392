"""Custom styling for questionary prompts.

This module provides a consistent style for the installer's
interactive confirmations.
"""

from questionary import Style

# ANSI 256 colors for broad terminal compatibility
PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#ffaf00 bold"),  # Amber question mark, prompts guard risky steps
        ("question", "bold"),
        ("answer", "fg:#87d787 bold"),  # Green submitted answer
        ("instruction", "fg:#6c6c6c italic"),  # Gray "(y/N)" hint
        ("text", ""),
    ]
)

QMARK = "? "
