"""!
@brief Remove Office through the Office Deployment Tool.
@details Builds a ``<Remove>`` configuration, asks for confirmation, then
runs ``setup.exe /configure`` through :mod:`odt_generator.command_runner`.
A failed run is retried once before the removal is reported as failed.
"""
from __future__ import annotations

import os
import shutil
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Sequence

from . import command_runner, logging_ext
from .confirm import request_removal_confirmation
from .errors import OdtGeneratorError
from .odt_document import render_xml

SETUP_EXECUTABLE = "setup.exe"
REMOVAL_ATTEMPTS = 2


class RemovalError(OdtGeneratorError):
    """!
    @brief Raised when the removal cannot be started or keeps failing.
    """


def build_removal_xml(
    product_ids: Sequence[str] | None = None,
    *,
    force_app_shutdown: bool = True,
    remove_msi: bool = True,
) -> str:
    """!
    @brief Generate ODT XML for Office removal.
    @param product_ids Specific product IDs to remove; all products when empty.
    @param force_app_shutdown Force close running Office apps.
    @param remove_msi Also remove MSI-based Office installations.
    @returns XML configuration string for removal.
    """
    root = ET.Element("Configuration")

    remove_elem = ET.SubElement(root, "Remove")
    if product_ids:
        for product_id in product_ids:
            product_elem = ET.SubElement(remove_elem, "Product")
            product_elem.set("ID", product_id)
    else:
        remove_elem.set("All", "TRUE")

    if force_app_shutdown:
        prop = ET.SubElement(root, "Property")
        prop.set("Name", "FORCEAPPSHUTDOWN")
        prop.set("Value", "TRUE")

    if remove_msi:
        ET.SubElement(root, "RemoveMSI")

    display_elem = ET.SubElement(root, "Display")
    display_elem.set("Level", "None")
    display_elem.set("AcceptEULA", "TRUE")

    logging_elem = ET.SubElement(root, "Logging")
    logging_elem.set("Level", "Standard")
    logging_elem.set("Path", "%temp%")

    return render_xml(root)


def locate_setup(setup_path: str | Path | None = None) -> Path:
    """!
    @brief Find the ODT ``setup.exe``.
    @details An explicit path must exist. Otherwise ``PATH`` and the current
    directory are searched.
    @throws RemovalError When no executable is found.
    """

    if setup_path:
        candidate = Path(setup_path)
        if candidate.is_file():
            return candidate
        raise RemovalError(f"ODT setup not found: {candidate}")

    found = shutil.which(SETUP_EXECUTABLE)
    if found:
        return Path(found)
    local = Path.cwd() / SETUP_EXECUTABLE
    if local.is_file():
        return local
    raise RemovalError(f"ODT {SETUP_EXECUTABLE} not found on PATH or in {Path.cwd()}; pass --setup")


def _write_temp_config(xml_content: str) -> Path:
    fd, temp_path = tempfile.mkstemp(suffix=".xml", prefix="odt_remove_")
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(xml_content)
    return Path(temp_path)


def run_removal(
    product_ids: Sequence[str] | None = None,
    *,
    setup_path: str | Path | None = None,
    force: bool = False,
    dry_run: bool = False,
    timeout: float | None = None,
    input_func: Callable[[str], str] | None = None,
    interactive: bool | None = None,
) -> command_runner.CommandResult | None:
    """!
    @brief Confirm and execute an ODT removal.
    @returns The final :class:`CommandResult`, or ``None`` when the user
    declined.
    @throws RemovalError When ``setup.exe`` is missing or both attempts fail.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    setup = locate_setup(setup_path)
    xml_content = build_removal_xml(product_ids)

    if not request_removal_confirmation(
        dry_run=dry_run, force=force, input_func=input_func, interactive=interactive
    ):
        human_logger.warning("Removal cancelled")
        machine_logger.info("odt_remove_cancelled", extra={"event": "odt_remove_cancelled"})
        return None

    config_path = _write_temp_config(xml_content)
    command = [str(setup), "/configure", str(config_path)]
    if dry_run:
        human_logger.info("Removal configuration:\n%s", xml_content)

    result: command_runner.CommandResult | None = None
    try:
        for attempt in range(1, REMOVAL_ATTEMPTS + 1):
            result = command_runner.run_command(
                command,
                event="odt_remove",
                timeout=timeout,
                dry_run=dry_run,
                human_message=f"Removing Office with ODT (attempt {attempt})",
                extra={"attempt": attempt, "products": list(product_ids or [])},
            )
            if result.skipped or result.ok:
                return result
            if attempt < REMOVAL_ATTEMPTS:
                human_logger.warning("ODT removal failed with %s; retrying once", result.returncode)
    finally:
        config_path.unlink(missing_ok=True)

    assert result is not None
    raise RemovalError(f"ODT removal failed with exit code {result.returncode}")


__all__ = ["REMOVAL_ATTEMPTS", "RemovalError", "build_removal_xml", "locate_setup", "run_removal"]
