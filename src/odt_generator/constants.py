"""!
@brief Static data for ODT Generator.
@details Centralises registry hives and paths, the supported language table,
LCID mappings, product catalogs, and excludable application lists so detection
and synthesis modules work from a single, versioned source of truth.
"""
from __future__ import annotations

from typing import Dict, Mapping, Tuple

try:  # pragma: no cover - Windows registry handles are optional on test hosts.
    import winreg
except ImportError:  # pragma: no cover - test scaffolding supplies substitutes.
    winreg = None  # type: ignore[assignment]


if winreg is not None:  # pragma: no branch - deterministic assignments.
    HKLM = winreg.HKEY_LOCAL_MACHINE
    HKCU = winreg.HKEY_CURRENT_USER
    HKU = winreg.HKEY_USERS
else:  # pragma: no cover - exercised implicitly in non-Windows CI.
    HKLM = 0x80000002
    HKCU = 0x80000001
    HKU = 0x80000003


REGISTRY_ROOTS: Dict[str, int] = {
    "HKLM": HKLM,
    "HKCU": HKCU,
    "HKU": HKU,
}

# ---------------------------------------------------------------------------
# Office installation roots
# ---------------------------------------------------------------------------

OFFICE_ROOT_KEYS: Tuple[str, ...] = (
    r"SOFTWARE\Microsoft\Office",
    r"SOFTWARE\WOW6432Node\Microsoft\Office",
)
"""!
@brief Office registry roots scanned for version keys, native view first.
"""

UNINSTALL_ROOT_KEYS: Tuple[str, ...] = (
    r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
    r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
)

WOW64_MARKER = "WOW6432NODE"

OFFICE_VERSION_PATTERN = r"^\d{2}\.\d$"

OFFICE_GUID_64BIT_PATTERN = r"\{.{8}-.{4}-.{4}-1000-0000000FF1CE\}$"
OFFICE_GUID_32BIT_PATTERN = r"\{.{8}-.{4}-.{4}-0000-0000000FF1CE\}$"

BRAND_MARKERS: Tuple[str, ...] = ("MICROSOFT OFFICE", "MICROSOFT 365")
"""!
@brief Upper-case display-name fragments identifying the suite itself.
"""

CLICK_TO_RUN_UNINSTALL_MARKER = "OfficeClickToRun"

# ---------------------------------------------------------------------------
# Click-to-Run configuration store
# ---------------------------------------------------------------------------

C2R_ROOT_KEYS: Tuple[str, ...] = (
    r"SOFTWARE\Microsoft\Office\15.0\ClickToRun",
    r"SOFTWARE\Microsoft\Office\ClickToRun",
    r"SOFTWARE\WOW6432Node\Microsoft\Office\15.0\ClickToRun",
    r"SOFTWARE\WOW6432Node\Microsoft\Office\ClickToRun",
)
"""!
@brief Candidate Click-to-Run roots probed in order; the first with an
``InstallPath`` wins.
"""

C2R_CONFIGURATION_SUBKEY = "Configuration"
C2R_PRODUCT_RELEASES_SUBKEY = "ProductReleaseIDs"
C2R_ACTIVE_SUBKEY = "Active"
C2R_RESERVED_RELEASE_NAMES = frozenset(("stream", "culture"))
C2R_NEUTRAL_LANGUAGE = "x-none"
C2R_PRODUCT_KEY_SUFFIX = ".16"

# ---------------------------------------------------------------------------
# Operating system language inventory
# ---------------------------------------------------------------------------

OS_MUI_SETTINGS_KEY = r"SYSTEM\CurrentControlSet\Control\MUI\Settings"
OS_UI_LANGUAGES_KEY = r"SYSTEM\CurrentControlSet\Control\MUI\UILanguages"
OS_NLS_LANGUAGE_KEY = r"SYSTEM\CurrentControlSet\Control\Nls\Language"
OS_ENVIRONMENT_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
USER_PROFILE_LANGUAGES_KEY = r"Control Panel\International\User Profile"
USER_CLASSES_SUFFIX = "_Classes"
SYSTEM_PROFILE_MAX_LENGTH = 8
"""!
@brief ``HKU`` subkeys this short are pseudo accounts (``.DEFAULT``,
``S-1-5-18`` and friends) rather than signed-in users.
"""

# ---------------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------------

SUPPORTED_LANGUAGES: Tuple[str, ...] = (
    "en-us",  # English (US)
    "ar-sa",  # Arabic (Saudi Arabia)
    "bg-bg",  # Bulgarian
    "zh-cn",  # Chinese (Simplified)
    "zh-tw",  # Chinese (Traditional)
    "hr-hr",  # Croatian
    "cs-cz",  # Czech
    "da-dk",  # Danish
    "nl-nl",  # Dutch
    "en-gb",  # English (UK)
    "et-ee",  # Estonian
    "fi-fi",  # Finnish
    "fr-fr",  # French (France)
    "fr-ca",  # French (Canada)
    "de-de",  # German
    "el-gr",  # Greek
    "he-il",  # Hebrew
    "hi-in",  # Hindi
    "hu-hu",  # Hungarian
    "id-id",  # Indonesian
    "it-it",  # Italian
    "ja-jp",  # Japanese
    "kk-kz",  # Kazakh
    "ko-kr",  # Korean
    "lv-lv",  # Latvian
    "lt-lt",  # Lithuanian
    "ms-my",  # Malay
    "nb-no",  # Norwegian (Bokmål)
    "pl-pl",  # Polish
    "pt-br",  # Portuguese (Brazil)
    "pt-pt",  # Portuguese (Portugal)
    "ro-ro",  # Romanian
    "ru-ru",  # Russian
    "sr-latn-rs",  # Serbian (Latin)
    "sk-sk",  # Slovak
    "sl-si",  # Slovenian
    "es-es",  # Spanish (Spain)
    "es-mx",  # Spanish (Mexico)
    "sv-se",  # Swedish
    "th-th",  # Thai
    "tr-tr",  # Turkish
    "uk-ua",  # Ukrainian
    "vi-vn",  # Vietnamese
)
"""!
@brief Language tags accepted by the Office Deployment Tool.
@details Order is significant: prefix fallback picks the first entry that
starts with the requested language prefix.
"""

LCID_CULTURES: Mapping[int, str] = {
    1025: "ar-sa",
    1026: "bg-bg",
    1027: "ca-es",
    1028: "zh-tw",
    1029: "cs-cz",
    1030: "da-dk",
    1031: "de-de",
    1032: "el-gr",
    1033: "en-us",
    1034: "es-es",
    1035: "fi-fi",
    1036: "fr-fr",
    1037: "he-il",
    1038: "hu-hu",
    1040: "it-it",
    1041: "ja-jp",
    1042: "ko-kr",
    1043: "nl-nl",
    1044: "nb-no",
    1045: "pl-pl",
    1046: "pt-br",
    1048: "ro-ro",
    1049: "ru-ru",
    1050: "hr-hr",
    1051: "sk-sk",
    1053: "sv-se",
    1054: "th-th",
    1055: "tr-tr",
    1057: "id-id",
    1058: "uk-ua",
    1060: "sl-si",
    1061: "et-ee",
    1062: "lv-lv",
    1063: "lt-lt",
    1066: "vi-vn",
    1069: "eu-es",
    1081: "hi-in",
    1086: "ms-my",
    1087: "kk-kz",
    2052: "zh-cn",
    2055: "de-ch",
    2057: "en-gb",
    2058: "es-mx",
    2060: "fr-be",
    2067: "nl-be",
    2068: "nn-no",
    2070: "pt-pt",
    2074: "sr-latn-cs",
    3076: "zh-hk",
    3079: "de-at",
    3081: "en-au",
    3082: "es-es",
    3084: "fr-ca",
    4100: "zh-sg",
    4105: "en-ca",
    4108: "fr-ch",
    5129: "en-nz",
    6153: "en-ie",
    9242: "sr-latn-rs",
    11274: "es-ar",
    16393: "en-in",
}
"""!
@brief Windows locale identifiers mapped to culture names.
@details Regional variants outside :data:`SUPPORTED_LANGUAGES` are listed so
the resolver can fall back by language prefix (``de-at`` → ``de-de``).
"""

# ---------------------------------------------------------------------------
# Products and applications
# ---------------------------------------------------------------------------

DEFAULT_PRODUCT_ID = "O365ProPlusRetail"

MAIN_PRODUCT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("SMALL BUSINESS", "O365SmallBusPremRetail"),
    ("BUSINESS", "O365BusinessRetail"),
    ("HOME", "O365HomePremRetail"),
)
"""!
@brief Suite display-name keywords that select a distinct main product ID.
"""

ADDON_PRODUCT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("VISIO", "VisioProRetail"),
    ("PROJECT", "ProjectProRetail"),
    ("SHAREPOINT DESIGNER", "SPDRetail"),
)
"""!
@brief Add-on tools recognised by name and the catalog ID each contributes.
"""

ADDON_BRAND_MARKER = "MICROSOFT"

C2R_EXCLUDABLE_APPS: Tuple[str, ...] = (
    "Access",
    "Excel",
    "Groove",
    "Lync",
    "OneDrive",
    "OneNote",
    "Outlook",
    "PowerPoint",
    "Publisher",
    "Word",
)
"""!
@brief Applications that can be excluded from a Click-to-Run product.
"""

MSI_EXCLUDABLE_APPS: Tuple[str, ...] = tuple(app for app in C2R_EXCLUDABLE_APPS if app != "OneDrive")
"""!
@brief Exclusion catalog for MSI installs; OneDrive only ships with Click-to-Run.
"""

PLATFORM_32 = "32"
PLATFORM_64 = "64"

DEFAULT_CONFIGURATION_FILENAME = "DefaultConfiguration.xml"

__all__ = [
    "ADDON_BRAND_MARKER",
    "ADDON_PRODUCT_KEYWORDS",
    "BRAND_MARKERS",
    "C2R_ACTIVE_SUBKEY",
    "C2R_CONFIGURATION_SUBKEY",
    "C2R_EXCLUDABLE_APPS",
    "C2R_NEUTRAL_LANGUAGE",
    "C2R_PRODUCT_KEY_SUFFIX",
    "C2R_PRODUCT_RELEASES_SUBKEY",
    "C2R_RESERVED_RELEASE_NAMES",
    "C2R_ROOT_KEYS",
    "CLICK_TO_RUN_UNINSTALL_MARKER",
    "DEFAULT_CONFIGURATION_FILENAME",
    "DEFAULT_PRODUCT_ID",
    "HKCU",
    "HKLM",
    "HKU",
    "LCID_CULTURES",
    "MAIN_PRODUCT_KEYWORDS",
    "MSI_EXCLUDABLE_APPS",
    "OFFICE_GUID_32BIT_PATTERN",
    "OFFICE_GUID_64BIT_PATTERN",
    "OFFICE_ROOT_KEYS",
    "OFFICE_VERSION_PATTERN",
    "OS_ENVIRONMENT_KEY",
    "OS_MUI_SETTINGS_KEY",
    "OS_NLS_LANGUAGE_KEY",
    "OS_UI_LANGUAGES_KEY",
    "PLATFORM_32",
    "PLATFORM_64",
    "REGISTRY_ROOTS",
    "SUPPORTED_LANGUAGES",
    "SYSTEM_PROFILE_MAX_LENGTH",
    "UNINSTALL_ROOT_KEYS",
    "USER_CLASSES_SUFFIX",
    "USER_PROFILE_LANGUAGES_KEY",
    "WOW64_MARKER",
]
