"""!
@brief Survey installed Office components from registry evidence.
@details Two independent registry areas are reconciled. The Office version
keys (``SOFTWARE\\Microsoft\\Office\\NN.N``) reveal where the suite is installed,
which component IDs are configured, and whether a Click-to-Run runtime serves
that version. The generic ``Uninstall`` records list every installed
application. Only uninstall entries located under one of the discovered Office
install roots are kept, and exactly one of them is flagged as the primary
product.
"""
from __future__ import annotations

import re
from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from . import constants, locale_resolver, logging_ext
from .models import InstalledProduct, OfficeSurvey, StreamingInstallRecord, normalize_platform
from .ordered_set import OrderedSet
from .registry_tools import RegistryReader, join_path

_VERSION_RE = re.compile(constants.OFFICE_VERSION_PATTERN)
_GUID_64_RE = re.compile(constants.OFFICE_GUID_64BIT_PATTERN, re.IGNORECASE)
_GUID_32_RE = re.compile(constants.OFFICE_GUID_32BIT_PATTERN, re.IGNORECASE)
_VERSIONED_FOLDER_RE = re.compile(r"^office\d{2}$", re.IGNORECASE)


def parse_registry_bool(value: object) -> bool | None:
    """!
    @brief Interpret the ``True``/``False``/``1``/``0`` strings Office stores.
    @returns ``None`` when the value is absent or unrecognised.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in {"true", "1", "yes"}:
        return True
    if text in {"false", "0", "no"}:
        return False
    return None


def _normalize_path(path: str) -> str:
    return path.strip().rstrip("\\/")


def _root_candidates(path: str) -> List[str]:
    """!
    @brief Expand an ``InstallRoot`` path to the prefixes uninstall entries use.
    @details MSI components record ``...\\Microsoft Office\\`` as their install
    location while ``InstallRoot`` points at ``...\\Microsoft Office\\Office16\\``,
    so the parent of a versioned ``OfficeNN`` folder is accepted as well.
    """

    normalized = _normalize_path(path)
    if not normalized:
        return []
    candidates = [normalized]
    parent, _, leaf = normalized.rpartition("\\")
    if parent and _VERSIONED_FOLDER_RE.match(leaf):
        candidates.append(parent)
    return candidates


def path_matches_root(install_location: str, root: str) -> bool:
    """!
    @brief Check whether ``install_location`` lies beneath ``root``.
    @details The comparison is an anchored, case-insensitive regular expression
    built from the escaped root so parentheses in ``Program Files (x86)`` are
    matched literally.
    """

    normalized_root = _normalize_path(root)
    if not normalized_root:
        return False
    pattern = "^" + re.escape(normalized_root) + r"(\\|/|$)"
    return re.match(pattern, _normalize_path(install_location), re.IGNORECASE) is not None


def detect_os_bitness(reader: RegistryReader) -> str:
    """!
    @brief Determine the host OS architecture from its environment block.
    @details Fails open to 64-bit when the value is missing.
    """

    architecture = reader.read_string(constants.HKLM, constants.OS_ENVIRONMENT_KEY, "PROCESSOR_ARCHITECTURE")
    if architecture and architecture.strip().lower() == "x86":
        return constants.PLATFORM_32
    return constants.PLATFORM_64


def _platform_from_modify_path(modify_path: str | None) -> str | None:
    if not modify_path:
        return None
    lowered = modify_path.lower()
    if "platform=x86" in lowered:
        return constants.PLATFORM_32
    if "platform=x64" in lowered:
        return constants.PLATFORM_64
    return None


def determine_bitness(
    product_code: str,
    modify_path: str | None,
    os_bitness: str,
    *,
    from_wow64: bool,
    streaming_platform: str | None = None,
) -> str:
    """!
    @brief Decide the bitness of one uninstall entry.
    @details Precedence: the Office product-code suffix convention, then a
    ``platform=`` flag in the entry's own ``ModifyPath``, then the OS
    architecture. The Click-to-Run ``Platform`` of a streaming entry replaces
    that result, and entries read from the ``WOW6432Node`` view are always
    32-bit. Every input belongs to the entry being evaluated.
    """

    if _GUID_64_RE.search(product_code):
        bitness = constants.PLATFORM_64
    elif _GUID_32_RE.search(product_code):
        bitness = constants.PLATFORM_32
    else:
        bitness = _platform_from_modify_path(modify_path) or os_bitness

    if streaming_platform:
        bitness = normalize_platform(streaming_platform, default=bitness)
    if from_wow64:
        bitness = constants.PLATFORM_32
    return bitness


def _has_brand_marker(display_name: str) -> bool:
    upper = display_name.upper()
    return any(marker in upper for marker in constants.BRAND_MARKERS)


class _OfficeEvidence:
    """!
    @brief Mutable accumulator used while walking the Office version keys.
    """

    def __init__(self) -> None:
        self.versions: OrderedSet[str] = OrderedSet()
        self.config_component_ids: OrderedSet[str] = OrderedSet()
        self.install_roots: OrderedSet[str] = OrderedSet(casefold=True)
        self.package_names: OrderedSet[str] = OrderedSet()
        self.streaming_installs: OrderedSet[StreamingInstallRecord] = OrderedSet()
        self.version_cultures: Dict[str, str] = {}
        self.root_cultures: List[Tuple[str, str]] = []

    def add_root(self, path: str | None, culture: str | None = None) -> None:
        if not path:
            return
        for candidate in _root_candidates(path):
            self.install_roots.add(candidate)
            if culture:
                self.root_cultures.append((candidate, culture))

    def culture_for(self, install_location: str) -> str | None:
        for root, culture in self.root_cultures:
            if path_matches_root(install_location, root):
                return culture
        return None

    def streaming_record_for(self, install_location: str) -> StreamingInstallRecord | None:
        location = _normalize_path(install_location).lower()
        for record in self.streaming_installs:
            if _normalize_path(record.install_path).lower() == location:
                return record
        return None


def _read_streaming_record(reader: RegistryReader, office_root: str, version_key: str) -> StreamingInstallRecord | None:
    """!
    @brief Locate a Click-to-Run install for one version key.
    @details The configuration may live beneath the version key itself or,
    for newer builds, beneath the version-agnostic Office root.
    """

    for config_path in (
        join_path(version_key, r"ClickToRun\Configuration"),
        join_path(office_root, r"ClickToRun\Configuration"),
    ):
        install_path = reader.read_string(constants.HKLM, config_path, "InstallationPath")
        if not install_path:
            continue
        return StreamingInstallRecord(
            install_path=install_path,
            platform=reader.read_string(constants.HKLM, config_path, "Platform"),
            client_culture=reader.read_string(constants.HKLM, config_path, "ClientCulture"),
            updates_enabled=parse_registry_bool(
                reader.read_string(constants.HKLM, config_path, "UpdatesEnabled")
            ),
            update_url=reader.read_string(constants.HKLM, config_path, "UpdateUrl"),
        )
    return None


def _collect_office_evidence(reader: RegistryReader) -> _OfficeEvidence:
    evidence = _OfficeEvidence()

    for office_root in constants.OFFICE_ROOT_KEYS:
        for version in reader.enum_subkeys(constants.HKLM, office_root):
            if not _VERSION_RE.match(version):
                continue
            evidence.versions.add(version)
            version_key = join_path(office_root, version)

            for component_id in reader.enum_subkeys(constants.HKLM, join_path(version_key, r"Common\Config")):
                if component_id:
                    evidence.config_component_ids.add(component_id.upper())

            sku_lcid = reader.read_dword(
                constants.HKLM, join_path(version_key, r"Common\LanguageResources"), "SKULanguage"
            )
            culture = locale_resolver.culture_from_lcid(sku_lcid) if sku_lcid else None
            if culture:
                evidence.version_cultures.setdefault(version, culture)

            evidence.add_root(
                reader.read_string(constants.HKLM, join_path(version_key, r"Common\InstallRoot"), "Path"),
                culture,
            )
            for application in reader.enum_subkeys(constants.HKLM, version_key):
                if application.lower() == "common":
                    continue
                evidence.add_root(
                    reader.read_string(constants.HKLM, join_path(version_key, application, "InstallRoot"), "Path"),
                    culture,
                )

            packages_key = join_path(version_key, r"Common\InstalledPackages")
            for package in reader.enum_subkeys(constants.HKLM, packages_key):
                package_name = reader.read_string(constants.HKLM, join_path(packages_key, package), "")
                if package_name:
                    evidence.package_names.add(package_name.replace(" ", "").lower())

            streaming = _read_streaming_record(reader, office_root, version_key)
            if streaming is not None:
                evidence.streaming_installs.add(streaming)
                evidence.add_root(streaming.install_path)

    return evidence


def _read_uninstall_entries(
    reader: RegistryReader,
    evidence: _OfficeEvidence,
    os_bitness: str,
) -> Iterable[Tuple[InstalledProduct, bool, bool]]:
    """!
    @brief Yield suite components with their primary-candidate flags.
    @returns Tuples of ``(product, config_candidate, streaming_candidate)``.
    """

    for uninstall_root in constants.UNINSTALL_ROOT_KEYS:
        from_wow64 = constants.WOW64_MARKER in uninstall_root.upper()
        for product_code in reader.enum_subkeys(constants.HKLM, uninstall_root):
            entry_key = join_path(uninstall_root, product_code)
            install_location = reader.read_string(constants.HKLM, entry_key, "InstallLocation")
            if not install_location or not install_location.strip():
                continue
            if not any(path_matches_root(install_location, root) for root in evidence.install_roots):
                continue

            display_name = reader.read_string(constants.HKLM, entry_key, "DisplayName") or ""
            display_version = reader.read_string(constants.HKLM, entry_key, "DisplayVersion") or ""
            modify_path = reader.read_string(constants.HKLM, entry_key, "ModifyPath")
            uninstall_string = reader.read_string(constants.HKLM, entry_key, "UninstallString") or ""
            c2r_component = reader.read_dword(constants.HKLM, entry_key, "ClickToRunComponent")

            streaming = evidence.streaming_record_for(install_location)
            is_click_to_run = (
                bool(c2r_component)
                or constants.CLICK_TO_RUN_UNINSTALL_MARKER.lower() in uninstall_string.lower()
                or streaming is not None
            )
            bitness = determine_bitness(
                product_code,
                modify_path,
                os_bitness,
                from_wow64=from_wow64,
                streaming_platform=streaming.platform if streaming is not None else None,
            )

            client_culture: str | None = None
            updates_enabled: bool | None = None
            update_url: str | None = None
            if is_click_to_run and streaming is not None:
                client_culture = streaming.client_culture
                updates_enabled = streaming.updates_enabled
                update_url = streaming.update_url
            elif not is_click_to_run:
                client_culture = evidence.culture_for(install_location)

            branded = _has_brand_marker(display_name)
            product = InstalledProduct(
                display_name=display_name,
                version=display_version,
                install_path=install_location,
                is_click_to_run=is_click_to_run,
                bitness=bitness,
                product_code=product_code,
                client_culture=client_culture,
                updates_enabled=updates_enabled,
                update_url=update_url,
            )
            yield (
                product,
                branded and product_code.upper() in evidence.config_component_ids,
                branded and streaming is not None,
            )


def survey_installations(reader: RegistryReader, *, show_all_products: bool = False) -> OfficeSurvey:
    """!
    @brief Discover Office components installed on the reader's host.
    @details The primary product is the first entry whose product code is one
    of the configured Office component IDs and whose name carries the suite
    brand; failing that, the first branded entry installed at a Click-to-Run
    location. Other entries are returned only with ``show_all_products``.
    Identical entries collapse to one, discovery order preserved.
    @param reader Registry reader bound to the target host.
    @param show_all_products Keep non-primary components in the result.
    @returns :class:`OfficeSurvey` with products and collected evidence.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    evidence = _collect_office_evidence(reader)
    os_bitness = detect_os_bitness(reader)

    entries: OrderedSet[InstalledProduct] = OrderedSet()
    config_candidates: List[InstalledProduct] = []
    streaming_candidates: List[InstalledProduct] = []
    for product, config_candidate, streaming_candidate in _read_uninstall_entries(reader, evidence, os_bitness):
        if not entries.add(product):
            continue
        if config_candidate:
            config_candidates.append(product)
        if streaming_candidate:
            streaming_candidates.append(product)

    primary = next(iter(config_candidates or streaming_candidates), None)

    products: List[InstalledProduct] = []
    for product in entries:
        if product is primary:
            products.append(replace(product, is_primary=True))
        elif show_all_products:
            products.append(product)

    survey = OfficeSurvey(
        products=tuple(products),
        versions=evidence.versions.to_tuple(),
        config_component_ids=evidence.config_component_ids.to_tuple(),
        install_roots=evidence.install_roots.to_tuple(),
        package_names=evidence.package_names.to_tuple(),
        streaming_installs=evidence.streaming_installs.to_tuple(),
        version_cultures=dict(evidence.version_cultures),
    )

    if primary is not None:
        human_logger.info("%s: primary Office product %s (%s-bit)", reader.host, primary.display_name, primary.bitness)
    else:
        human_logger.info("%s: no primary Office product detected", reader.host)
    machine_logger.info(
        "office_survey",
        extra={
            "event": "office_survey",
            "host": reader.host,
            "versions": list(survey.versions),
            "products": [product.to_dict() for product in survey.products],
            "install_roots": list(survey.install_roots),
            "streaming_installs": list(survey.streaming_install_paths),
        },
    )
    return survey


__all__ = [
    "detect_os_bitness",
    "determine_bitness",
    "parse_registry_bool",
    "path_matches_root",
    "survey_installations",
]
