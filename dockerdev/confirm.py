"""Prompts that stand between the user and risky actions."""
import typer

from dockerdev.errors import NonInteractiveError


def _read_line(prompt_text: str) -> str:
    try:
        return typer.prompt(prompt_text, default='n', show_default=False, prompt_suffix=' ')
    except typer.Abort:
        raise NonInteractiveError(f"No answer could be read for: {prompt_text.strip()}") from None


def confirm(prompt_text: str, expected_token: str) -> bool:
    """Return True only if the user types expected_token exactly.

    An empty answer counts as "n". A False result must abort the whole run.
    """
    return _read_line(prompt_text) == expected_token


def ask_yes_no(question: str) -> bool:
    """Ask a [y/n] question; anything but "y" is no."""
    return _read_line(f"{question} [y/n]") == 'y'
