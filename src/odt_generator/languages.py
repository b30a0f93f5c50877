"""!
@brief Decide which languages a generated configuration requests.
@details The primary language comes from an explicit override, from the
Click-to-Run client culture (``current`` policy only), or from the OS UI
language. Additional languages are gathered according to the selected
:class:`LanguagePolicy` and never repeat the primary language.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Sequence

from . import c2r_config, constants, locale_resolver, logging_ext
from .errors import OdtGeneratorError
from .models import ClickToRunConfiguration, LanguageSet
from .ordered_set import OrderedSet
from .registry_tools import RegistryReader, join_path

_VERSION_RE = re.compile(constants.OFFICE_VERSION_PATTERN)


class UnresolvableLanguageError(OdtGeneratorError):
    """!
    @brief Raised when no supported primary language can be determined.
    """


class LanguagePolicy(Enum):
    """!
    @brief How additional languages are aggregated.
    """

    CURRENT = "current"
    OS = "os"
    OS_AND_USER = "os-and-user"
    ALL_IN_USE = "all-in-use"

    @property
    def includes_user_languages(self) -> bool:
        return self in (LanguagePolicy.OS_AND_USER, LanguagePolicy.ALL_IN_USE)

    @property
    def includes_product_languages(self) -> bool:
        return self in (LanguagePolicy.CURRENT, LanguagePolicy.ALL_IN_USE)

    @classmethod
    def parse(cls, value: "str | LanguagePolicy") -> "LanguagePolicy":
        """!
        @brief Accept the short CLI names as well as the descriptive aliases.
        """

        if isinstance(value, LanguagePolicy):
            return value
        text = str(value).strip().lower()
        try:
            return cls(text)
        except ValueError:
            pass
        alias = _POLICY_ALIASES.get(text)
        if alias is None:
            raise ValueError(f"Unknown language policy: {value}")
        return alias

    @classmethod
    def choices(cls) -> "list[str]":
        """!
        @brief Every name :meth:`parse` accepts, short names first.
        """

        return [policy.value for policy in cls] + list(_POLICY_ALIASES)


_POLICY_ALIASES = {
    "current-in-use-by-installed-suite": LanguagePolicy.CURRENT,
    "os-language-only": LanguagePolicy.OS,
    "os-and-signed-in-user-languages": LanguagePolicy.OS_AND_USER,
    "all-in-use-languages": LanguagePolicy.ALL_IN_USE,
}


def resolve_os_language(reader: RegistryReader) -> str | None:
    """!
    @brief Resolve the OS UI language of the host.
    @details ``MUI\\Settings\\PreferredUILanguages`` takes precedence; the
    hexadecimal ``Nls\\Language`` LCIDs are the fallback.
    """

    preferred = reader.read_multi_string(constants.HKLM, constants.OS_MUI_SETTINGS_KEY, "PreferredUILanguages")
    for tag in preferred or []:
        language = locale_resolver.resolve_language(tag)
        if language:
            return language

    for name in ("Default", "InstallLanguage"):
        lcid = reader.read_string(constants.HKLM, constants.OS_NLS_LANGUAGE_KEY, name)
        language = locale_resolver.language_from_lcid(lcid, hexadecimal=True)
        if language:
            return language
    return None


def is_user_profile(sid: str) -> bool:
    """!
    @brief Distinguish signed-in user hives from pseudo accounts and class roots.
    """

    return len(sid) > constants.SYSTEM_PROFILE_MAX_LENGTH and not sid.endswith(constants.USER_CLASSES_SUFFIX)


def collect_user_languages(reader: RegistryReader) -> OrderedSet[str]:
    """!
    @brief Gather the language lists of every user profile loaded under ``HKU``.
    """

    languages: OrderedSet[str] = OrderedSet(casefold=True)
    for sid in reader.enum_subkeys(constants.HKU, ""):
        if not is_user_profile(sid):
            continue
        values = reader.read_multi_string(
            constants.HKU, join_path(sid, constants.USER_PROFILE_LANGUAGES_KEY), "Languages"
        )
        for tag in values or []:
            language = locale_resolver.resolve_language(tag)
            if language:
                languages.add(language)
    return languages


def collect_language_packs(reader: RegistryReader) -> OrderedSet[str]:
    """!
    @brief List installed OS language packs that Office also supports.
    """

    languages: OrderedSet[str] = OrderedSet(casefold=True)
    for name in reader.enum_subkeys(constants.HKLM, constants.OS_UI_LANGUAGES_KEY):
        tag = name.strip().lower()
        if locale_resolver.is_supported(tag):
            languages.add(tag)
    return languages


def _msi_product_languages(reader: RegistryReader) -> OrderedSet[str]:
    languages: OrderedSet[str] = OrderedSet(casefold=True)
    for office_root in constants.OFFICE_ROOT_KEYS:
        for version in reader.enum_subkeys(constants.HKLM, office_root):
            if not _VERSION_RE.match(version):
                continue
            resources_key = join_path(office_root, version, r"Common\LanguageResources")
            for lcid in reader.enum_value_names(constants.HKLM, join_path(resources_key, "EnabledLanguages")):
                language = locale_resolver.language_from_lcid(lcid)
                if language:
                    languages.add(language)
            ui_language = locale_resolver.language_from_lcid(
                reader.read_dword(constants.HKLM, resources_key, "UILanguage")
            )
            if ui_language:
                languages.add(ui_language)
    return languages


def product_languages(
    reader: RegistryReader,
    config: ClickToRunConfiguration,
    product_ids: Sequence[str],
) -> OrderedSet[str]:
    """!
    @brief Collect languages already installed for the detected products.
    @details With a Click-to-Run runtime these are the culture subkeys of each
    product's active release. Otherwise the MSI ``LanguageResources`` LCIDs of
    every Office version are used.
    """

    if not config.installed:
        return _msi_product_languages(reader)

    languages: OrderedSet[str] = OrderedSet(casefold=True)
    for product_id in product_ids:
        for culture in c2r_config.product_culture_keys(reader, config, product_id):
            language = locale_resolver.resolve_language(culture)
            if language:
                languages.add(language)
    return languages


def _merge(target: OrderedSet[str], languages: Iterable[str]) -> None:
    for language in languages:
        target.add(language.lower())


def build_language_set(
    reader: RegistryReader,
    policy: LanguagePolicy,
    config: ClickToRunConfiguration,
    product_ids: Sequence[str] = (),
    *,
    primary_override: str | None = None,
) -> LanguageSet:
    """!
    @brief Resolve the primary and additional languages for one host.
    @param reader Registry reader bound to the target host.
    @param policy Aggregation policy.
    @param config Click-to-Run or MSI-derived configuration.
    @param product_ids Products whose installed languages may be folded in.
    @param primary_override Caller-supplied primary language tag.
    @throws UnresolvableLanguageError When no supported primary is found.
    """

    policy = LanguagePolicy.parse(policy)

    primary: str | None = None
    if primary_override:
        primary = locale_resolver.resolve_language(primary_override)
        if primary is None:
            raise UnresolvableLanguageError(f"Unsupported primary language: {primary_override}")
    if primary is None and policy is LanguagePolicy.CURRENT and config.installed:
        primary = locale_resolver.resolve_language(config.client_culture)
    if primary is None:
        primary = resolve_os_language(reader)
    if primary is None:
        raise UnresolvableLanguageError(f"{reader.host}: no supported primary language could be resolved")

    additional: OrderedSet[str] = OrderedSet(casefold=True)
    if policy.includes_user_languages:
        _merge(additional, collect_user_languages(reader))
        _merge(additional, collect_language_packs(reader))
    if policy.includes_product_languages:
        _merge(additional, product_languages(reader, config, product_ids))
    additional.discard(primary)

    language_set = LanguageSet(primary=primary, additional=additional.to_tuple())
    logging_ext.get_machine_logger().info(
        "language_set",
        extra={
            "event": "language_set",
            "host": reader.host,
            "policy": policy.value,
            "primary": language_set.primary,
            "additional": list(language_set.additional),
        },
    )
    return language_set


__all__ = [
    "LanguagePolicy",
    "UnresolvableLanguageError",
    "build_language_set",
    "collect_language_packs",
    "collect_user_languages",
    "is_user_profile",
    "product_languages",
    "resolve_os_language",
]
