"""!
@brief Derive a deployment configuration from MSI-installed Office.
@details MSI installs carry no product-release list, so product IDs are
inferred from the surveyed display names: the suite maps to a retail catalog
ID and recognised add-on tools contribute their own IDs.
"""
from __future__ import annotations

import re
from typing import Iterable

from . import constants, logging_ext
from .models import ClickToRunConfiguration, InstalledProduct, OfficeSurvey, normalize_platform
from .ordered_set import OrderedSet
from .registry_tools import RegistryReader, join_path

_VERSION_RE = re.compile(constants.OFFICE_VERSION_PATTERN)


def find_msi_install_root(reader: RegistryReader) -> tuple[str, str] | None:
    """!
    @brief Return ``(version, path)`` for the first version key with an install root.
    @details Roots are scanned in declared order and version keys in
    enumeration order.
    """

    for office_root in constants.OFFICE_ROOT_KEYS:
        for version in reader.enum_subkeys(constants.HKLM, office_root):
            if not _VERSION_RE.match(version):
                continue
            path = reader.read_string(
                constants.HKLM, join_path(office_root, version, r"Common\InstallRoot"), "Path"
            )
            if path and path.strip():
                return version, path
    return None


def main_product_id(display_name: str | None) -> str:
    upper = (display_name or "").upper()
    for keyword, product_id in constants.MAIN_PRODUCT_KEYWORDS:
        if keyword in upper:
            return product_id
    return constants.DEFAULT_PRODUCT_ID


def infer_product_ids(products: Iterable[InstalledProduct], primary: InstalledProduct | None) -> OrderedSet[str]:
    """!
    @brief Infer catalog product IDs from surveyed display names.
    @details The main suite ID comes first, followed by one ID per add-on
    tool whose name carries the vendor marker. Repeats are skipped.
    """

    identifiers: OrderedSet[str] = OrderedSet(casefold=True)
    identifiers.add(main_product_id(primary.display_name if primary else None))
    for product in products:
        upper = product.display_name.upper()
        if constants.ADDON_BRAND_MARKER not in upper:
            continue
        for keyword, product_id in constants.ADDON_PRODUCT_KEYWORDS:
            if keyword in upper:
                identifiers.add(product_id)
    return identifiers


def get_msi_configuration(reader: RegistryReader, survey: OfficeSurvey) -> ClickToRunConfiguration:
    """!
    @brief Build the configuration used when no Click-to-Run runtime exists.
    @param reader Registry reader bound to the target host.
    @param survey Result of :func:`odt_generator.detect.survey_installations`.
    @returns Configuration with ``source="msi"``; ``installed`` stays ``False``.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    root = find_msi_install_root(reader)
    version_key, install_path = root if root is not None else (None, None)

    primary = survey.primary
    if len(survey.products) == 1:
        platform = normalize_platform(survey.products[0].bitness)
    elif primary is not None:
        platform = normalize_platform(primary.bitness)
    else:
        platform = constants.PLATFORM_64

    culture = primary.client_culture if primary is not None else None
    if not culture and version_key:
        culture = survey.version_cultures.get(version_key)

    product_ids = infer_product_ids(survey.products, primary)

    config = ClickToRunConfiguration(
        installed=False,
        source="msi",
        platform=platform,
        client_culture=culture,
        product_release_ids=product_ids.to_tuple(),
        install_path=install_path,
    )

    human_logger.info(
        "%s: MSI Office %s (%s-bit) mapped to %s",
        reader.host,
        version_key or "not found",
        platform,
        ", ".join(config.product_release_ids),
    )
    machine_logger.info(
        "msi_config",
        extra={
            "event": "msi_config",
            "host": reader.host,
            "version": version_key,
            "install_path": install_path,
            "platform": platform,
            "client_culture": culture,
            "product_release_ids": list(config.product_release_ids),
        },
    )
    return config


__all__ = ["find_msi_install_root", "get_msi_configuration", "infer_product_ids", "main_product_id"]
