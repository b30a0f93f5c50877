"""!
@brief Map locale identifiers and free-form language tags to ODT languages.
@details The Office Deployment Tool accepts a fixed set of language tags.
Detected cultures frequently carry a regional variant the tool does not ship
(``de-at``, ``en-au``) so resolution falls back to the first supported entry
whose language prefix starts with the requested one.
"""
from __future__ import annotations

from . import constants


def resolve_language(tag: str | None) -> str | None:
    """!
    @brief Resolve ``tag`` to one of :data:`constants.SUPPORTED_LANGUAGES`.
    @details An exact, case-insensitive match wins. Otherwise the text before
    the first hyphen is matched against the start of each supported entry's
    prefix in table order.
    @param tag Culture name such as ``en-US`` or ``fr``.
    @returns The supported lower-case tag, or ``None`` when nothing matches.
    """

    if not tag:
        return None
    candidate = str(tag).strip().lower()
    if not candidate:
        return None

    if candidate in constants.SUPPORTED_LANGUAGES:
        return candidate

    prefix = candidate.split("-", 1)[0]
    if not prefix:
        return None
    for supported in constants.SUPPORTED_LANGUAGES:
        if supported.split("-", 1)[0].startswith(prefix):
            return supported
    return None


def culture_from_lcid(lcid: int | str | None, *, hexadecimal: bool = False) -> str | None:
    """!
    @brief Translate a Windows LCID into a culture name.
    @details Accepts integers and decimal strings (``"1033"``). Pass
    ``hexadecimal=True`` for the form stored under ``Nls\\Language``
    (``"0409"``); a ``0x`` prefix is always honoured.
    """

    if lcid is None:
        return None
    if isinstance(lcid, int):
        return constants.LCID_CULTURES.get(lcid)

    text = str(lcid).strip().lower()
    base = 16 if hexadecimal else 10
    if text.startswith("0x"):
        base = 16
        text = text[2:]
    if not text:
        return None
    try:
        value = int(text, base)
    except ValueError:
        return None
    return constants.LCID_CULTURES.get(value)


def language_from_lcid(lcid: int | str | None, *, hexadecimal: bool = False) -> str | None:
    """!
    @brief Resolve an LCID straight to a supported language tag.
    """

    return resolve_language(culture_from_lcid(lcid, hexadecimal=hexadecimal))


def is_supported(tag: str | None) -> bool:
    return bool(tag) and str(tag).strip().lower() in constants.SUPPORTED_LANGUAGES


__all__ = ["culture_from_lcid", "is_supported", "language_from_lcid", "resolve_language"]
