"""!
@brief Shared fixtures for the ODT Generator test-suite.
@details Registry access is replaced by :class:`FakeRegistryReader`, an
in-memory tree keyed by hive and case-insensitive path, so detection runs the
same on any platform.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from odt_generator import constants, logging_ext
from odt_generator.registry_tools import RegistryReader

_Key = Tuple[int, str]


class FakeRegistryReader(RegistryReader):
    """!
    @brief Dict-backed :class:`RegistryReader` used in place of ``winreg``.
    """

    def __init__(self, host: str = "TESTHOST") -> None:
        self.host = host
        self.closed = False
        self._children: Dict[_Key, List[str]] = {}
        self._values: Dict[_Key, Dict[str, Tuple[str, object]]] = {}

    def add_key(self, root: int, path: str, values: Mapping[str, object] | None = None) -> "FakeRegistryReader":
        parent = ""
        for part in [segment for segment in path.split("\\") if segment]:
            children = self._children.setdefault((root, parent.lower()), [])
            if part.lower() not in (child.lower() for child in children):
                children.append(part)
            parent = f"{parent}\\{part}" if parent else part
        bucket = self._values.setdefault((root, parent.lower()), {})
        for name, value in (values or {}).items():
            bucket[name.lower()] = (name, value)
        return self

    def _lookup(self, root: int, path: str, name: str) -> object | None:
        entry = self._values.get((root, path.strip("\\").lower()), {}).get(name.lower())
        return entry[1] if entry is not None else None

    def enum_subkeys(self, root: int, path: str) -> List[str]:
        return list(self._children.get((root, path.strip("\\").lower()), []))

    def enum_value_names(self, root: int, path: str) -> List[str]:
        return [name for name, _ in self._values.get((root, path.strip("\\").lower()), {}).values()]

    def read_string(self, root: int, path: str, name: str) -> str | None:
        value = self._lookup(root, path, name)
        return value if isinstance(value, str) else None

    def read_multi_string(self, root: int, path: str, name: str) -> List[str] | None:
        value = self._lookup(root, path, name)
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]  # type: ignore[union-attr]

    def read_dword(self, root: int, path: str, name: str) -> int | None:
        value = self._lookup(root, path, name)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def registry() -> FakeRegistryReader:
    """!
    @brief Empty fake registry bound to ``TESTHOST``.
    """

    return FakeRegistryReader()


@pytest.fixture
def registry_factory():
    """!
    @brief Build fresh fake registries with a chosen host name.
    """

    return FakeRegistryReader


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """!
    @brief Reset logging between tests to avoid handler leakage.
    """

    yield
    for name in (logging_ext.HUMAN_LOGGER_NAME, logging_ext.MACHINE_LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for flt in list(logger.filters):
            logger.removeFilter(flt)


# ---------------------------------------------------------------------------
# Registry layouts shared by several test modules
# ---------------------------------------------------------------------------

OFFICE16 = r"SOFTWARE\Microsoft\Office\16.0"
C2R_ROOT = r"SOFTWARE\Microsoft\Office\ClickToRun"
UNINSTALL = constants.UNINSTALL_ROOT_KEYS[0]
UNINSTALL_WOW = constants.UNINSTALL_ROOT_KEYS[1]
C2R_INSTALL_PATH = r"C:\Program Files\Microsoft Office"


def install_click_to_run(
    reader: FakeRegistryReader,
    *,
    platform: str = "x64",
    culture: str = "en-us",
    release_ids: str = "O365ProPlusRetail",
    installed_apps: Tuple[str, ...] = ("Excel", "Word", "Outlook", "PowerPoint", "OneNote", "Access", "Publisher", "Groove", "Lync", "OneDrive"),
    product_cultures: Tuple[str, ...] = ("en-us",),
    with_uninstall_entry: bool = True,
) -> FakeRegistryReader:
    """!
    @brief Populate a typical Microsoft 365 Click-to-Run footprint.
    """

    reader.add_key(constants.HKLM, C2R_ROOT, {"InstallPath": C2R_INSTALL_PATH})
    reader.add_key(
        constants.HKLM,
        C2R_ROOT + r"\Configuration",
        {
            "Platform": platform,
            "ClientCulture": culture,
            "ProductReleaseIds": release_ids,
            "VersionToReport": "16.0.17328.20162",
            "UpdatesEnabled": "True",
            "UpdateUrl": r"\\share\office",
            "InstallationPath": C2R_INSTALL_PATH,
        },
    )
    reader.add_key(constants.HKLM, OFFICE16 + r"\Common\InstallRoot", {"Path": C2R_INSTALL_PATH + "\\root\\Office16\\"})
    for product in [item for item in release_ids.split(",") if item]:
        product_key = C2R_ROOT + rf"\ProductReleaseIDs\Active\{product}"
        reader.add_key(constants.HKLM, product_key + r"\x-none")
        for app in installed_apps:
            reader.add_key(constants.HKLM, product_key + rf"\x-none\{app}.x-none")
        for product_culture in product_cultures:
            reader.add_key(constants.HKLM, product_key + "\\" + product_culture)
    if with_uninstall_entry:
        reader.add_key(
            constants.HKLM,
            UNINSTALL + r"\O365ProPlusRetail - en-us",
            {
                "DisplayName": "Microsoft 365 Apps for enterprise - en-us",
                "DisplayVersion": "16.0.17328.20162",
                "InstallLocation": C2R_INSTALL_PATH,
                "UninstallString": r'"C:\Program Files\Common Files\Microsoft Shared\ClickToRun\OfficeClickToRun.exe" scenario=install',
                "ClickToRunComponent": 1,
            },
        )
    return reader


def set_os_language(reader: FakeRegistryReader, culture: str | None = None, *, nls_default: str | None = None) -> None:
    if culture is not None:
        reader.add_key(constants.HKLM, constants.OS_MUI_SETTINGS_KEY, {"PreferredUILanguages": [culture]})
    if nls_default is not None:
        reader.add_key(constants.HKLM, constants.OS_NLS_LANGUAGE_KEY, {"Default": nls_default})
