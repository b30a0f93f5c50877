"""!
@brief Subprocess execution with structured telemetry.
@details Wraps :func:`subprocess.run` so every external command records a
plan event before it starts and a result (or failure) event afterwards. Only
the removal command shells out; the generator itself never does.
"""
from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Sequence

from . import logging_ext


@dataclass
class CommandResult:
    """!
    @brief Outcome metadata returned by :func:`run_command`.
    @details ``skipped`` is ``True`` when dry-run mode bypassed the
    subprocess; ``timed_out`` when the timeout elapsed.
    """

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float
    skipped: bool = False
    timed_out: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and self.error is None


def _payload(event: str, command: Sequence[str], extra: Mapping[str, object] | None, **fields: object) -> Dict[str, object]:
    payload: Dict[str, object] = {"event": event, "command": list(command)}
    payload.update(fields)
    if extra:
        payload.update(extra)
    return payload


def run_command(
    command: Sequence[str],
    *,
    event: str,
    timeout: int | float | None = None,
    dry_run: bool = False,
    human_message: str | None = None,
    extra: Mapping[str, object] | None = None,
) -> CommandResult:
    """!
    @brief Execute ``command`` while emitting structured telemetry records.
    @details Logs ``<event>_plan`` before invocation and ``<event>_result``
    once the process exits, or ``<event>_timeout``/``<event>_missing``/
    ``<event>_error`` on failure.
    @param command Command sequence to execute.
    @param event Base event identifier recorded in machine logs.
    @param timeout Optional timeout in seconds for the subprocess.
    @param dry_run When ``True`` skip execution and return a ``skipped`` result.
    @param human_message Optional message logged to the human channel before
    execution.
    @param extra Mapping merged into machine log ``extra`` payloads.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    command_list = [str(part) for part in command]
    machine_logger.info(f"{event}_plan", extra=_payload(f"{event}_plan", command_list, extra))

    if dry_run:
        human_logger.info("Dry-run: would execute %s", " ".join(command_list))
        machine_logger.info(f"{event}_dry_run", extra=_payload(f"{event}_dry_run", command_list, extra))
        return CommandResult(command=command_list, returncode=0, stdout="", stderr="", duration=0.0, skipped=True)

    if human_message:
        human_logger.info(human_message)

    start = time.monotonic()
    try:
        completed = subprocess.run(  # noqa: S603 - intentional command execution
            command_list,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        duration = time.monotonic() - start
        human_logger.error("Command not found: %s", command_list[0])
        machine_logger.error(
            f"{event}_missing",
            extra=_payload(f"{event}_missing", command_list, extra, duration=duration, error=str(exc)),
        )
        return CommandResult(
            command=command_list, returncode=127, stdout="", stderr="", duration=duration, error=str(exc)
        )
    except subprocess.TimeoutExpired as exc:
        duration = time.monotonic() - start
        human_logger.error("Command timed out after %.1fs: %s", duration, command_list[0])
        stdout = exc.stdout if isinstance(exc.stdout, str) else ""
        stderr = exc.stderr if isinstance(exc.stderr, str) else ""
        machine_logger.error(
            f"{event}_timeout",
            extra=_payload(f"{event}_timeout", command_list, extra, duration=duration, stdout=stdout, stderr=stderr),
        )
        return CommandResult(
            command=command_list,
            returncode=1,
            stdout=stdout,
            stderr=stderr,
            duration=duration,
            timed_out=True,
            error="timeout",
        )
    except OSError as exc:
        duration = time.monotonic() - start
        human_logger.error("Failed to execute %s: %s", command_list[0], exc)
        machine_logger.error(
            f"{event}_error",
            extra=_payload(f"{event}_error", command_list, extra, duration=duration, error=str(exc)),
        )
        return CommandResult(command=command_list, returncode=1, stdout="", stderr="", duration=duration, error=str(exc))

    duration = time.monotonic() - start
    machine_logger.info(
        f"{event}_result",
        extra=_payload(
            f"{event}_result",
            command_list,
            extra,
            return_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            duration=duration,
        ),
    )
    if completed.returncode != 0:
        human_logger.warning("Command %s exited with %s", command_list[0], completed.returncode)

    return CommandResult(
        command=command_list,
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        duration=duration,
    )


__all__ = ["CommandResult", "run_command"]
