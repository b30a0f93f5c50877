"""!
@brief Confirmation prompt for the removal command.
@details Kept apart from :mod:`odt_generator.uninstall` so the prompt logic
can be exercised without touching subprocesses.
"""

from __future__ import annotations

import sys
from typing import Callable

CONFIRM_PROMPT = "This will remove Microsoft Office from this machine using the Office Deployment Tool. Continue? (y/N)"


def request_removal_confirmation(
    *,
    dry_run: bool,
    force: bool,
    input_func: Callable[[str], str] | None = None,
    interactive: bool | None = None,
) -> bool:
    """!
    @brief Ask the user to confirm an Office removal.
    @details Dry-run and forced runs skip the prompt. Unlike the generator,
    removal is destructive, so a non-interactive session without ``--force``
    is refused rather than assumed to agree.
    @param dry_run Whether the pending execution is a dry-run.
    @param force Whether the caller supplied ``--force``.
    @param input_func Optional input function override.
    @param interactive Optional override to signal if the environment is
    interactive.
    @returns ``True`` when the removal should proceed.
    """

    if dry_run or force:
        return True

    if interactive is None:
        stdin = getattr(sys, "stdin", None)
        isatty = getattr(stdin, "isatty", None)
        interactive = bool(isatty and isatty())

    if not interactive:
        return False

    if input_func is None:
        input_func = input

    try:
        response = input_func(f"{CONFIRM_PROMPT} ")
    except EOFError:
        return False

    return response.strip().lower() in ("y", "yes")


__all__ = ["CONFIRM_PROMPT", "request_removal_confirmation"]
