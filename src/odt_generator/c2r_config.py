"""!
@brief Inspect the Click-to-Run runtime configuration store.
@details The runtime records its active configuration beneath one of several
``ClickToRun`` roots depending on the Office generation and on whether it was
deployed into the 32-bit registry view. The first root carrying an
``InstallPath`` is authoritative; later roots are never consulted.
"""
from __future__ import annotations

from typing import List

from . import constants, logging_ext
from .detect import parse_registry_bool
from .models import ClickToRunConfiguration
from .ordered_set import OrderedSet
from .registry_tools import RegistryReader, join_path


def _split_release_ids(raw: str | None) -> OrderedSet[str]:
    identifiers: OrderedSet[str] = OrderedSet(casefold=True)
    for part in (raw or "").split(","):
        part = part.strip()
        if part:
            identifiers.add(part)
    return identifiers


def _active_release_ids(reader: RegistryReader, root_key: str) -> OrderedSet[str]:
    """!
    @brief Rebuild the release list from the ``ProductReleaseIDs\\Active`` children.
    """

    active_key = join_path(root_key, constants.C2R_PRODUCT_RELEASES_SUBKEY, constants.C2R_ACTIVE_SUBKEY)
    identifiers: OrderedSet[str] = OrderedSet(casefold=True)
    for name in reader.enum_subkeys(constants.HKLM, active_key):
        if name.lower() in constants.C2R_RESERVED_RELEASE_NAMES:
            continue
        identifiers.add(name)
    return identifiers


def click_to_run_platform(value: str | None) -> str:
    """!
    @brief Normalise the runtime ``Platform`` value.
    @details Only ``x86`` selects 32-bit; anything else, including a missing
    value, is treated as 64-bit.
    """

    if value and value.strip().lower() == "x86":
        return constants.PLATFORM_32
    return constants.PLATFORM_64


def get_click_to_run_configuration(reader: RegistryReader) -> ClickToRunConfiguration:
    """!
    @brief Read the active Click-to-Run configuration from the host.
    @returns A populated configuration, or ``ClickToRunConfiguration()`` with
    ``installed=False`` when no runtime is present.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    root_key: str | None = None
    install_path: str | None = None
    for candidate in constants.C2R_ROOT_KEYS:
        value = reader.read_string(constants.HKLM, candidate, "InstallPath")
        if value and value.strip():
            root_key = candidate
            install_path = value
            break

    if root_key is None:
        human_logger.debug("%s: Click-to-Run runtime not present", reader.host)
        machine_logger.info("c2r_config", extra={"event": "c2r_config", "host": reader.host, "installed": False})
        return ClickToRunConfiguration()

    config_key = join_path(root_key, constants.C2R_CONFIGURATION_SUBKEY)

    def read(name: str) -> str | None:
        return reader.read_string(constants.HKLM, config_key, name)

    release_ids = _split_release_ids(read("ProductReleaseIds"))
    if not release_ids:
        release_ids = _active_release_ids(reader, root_key)

    config = ClickToRunConfiguration(
        installed=True,
        platform=click_to_run_platform(read("Platform")),
        client_culture=(read("ClientCulture") or None),
        product_release_ids=release_ids.to_tuple(),
        version=read("VersionToReport"),
        install_path=install_path,
        updates_enabled=parse_registry_bool(read("UpdatesEnabled")),
        update_url=read("UpdateUrl"),
        update_deadline=read("UpdateDeadline"),
        target_version=read("UpdateToVersion"),
        cdn_base_url=read("CDNBaseUrl"),
        update_channel=read("UpdateChannel"),
        root_key_path=root_key,
        config_key_path=config_key,
    )

    human_logger.info(
        "%s: Click-to-Run %s (%s-bit) with products %s",
        reader.host,
        config.version or "unknown version",
        config.platform,
        ", ".join(config.product_release_ids) or "none",
    )
    machine_logger.info(
        "c2r_config",
        extra={
            "event": "c2r_config",
            "host": reader.host,
            "installed": True,
            "root": root_key,
            "platform": config.platform,
            "client_culture": config.client_culture,
            "product_release_ids": list(config.product_release_ids),
            "version": config.version,
            "updates_enabled": config.updates_enabled,
            "update_url": config.update_url,
        },
    )
    return config


def product_language_path(reader: RegistryReader, config: ClickToRunConfiguration, product_id: str) -> str | None:
    """!
    @brief Locate the active-release subtree holding one product's cultures.
    @details Newer runtimes name the active release under
    ``ProductReleaseIDs\\ActiveConfiguration`` and store products as
    ``<product>.16``; older ones use ``ProductReleaseIDs\\Active\\<product>``.
    The former is preferred when it has content.
    """

    if not config.installed or not config.root_key_path:
        return None

    releases_key = join_path(config.root_key_path, constants.C2R_PRODUCT_RELEASES_SUBKEY)
    active_configuration = reader.read_string(constants.HKLM, releases_key, "ActiveConfiguration")
    if active_configuration:
        candidate = join_path(releases_key, active_configuration, product_id + constants.C2R_PRODUCT_KEY_SUFFIX)
        if reader.enum_subkeys(constants.HKLM, candidate):
            return candidate
    return join_path(releases_key, constants.C2R_ACTIVE_SUBKEY, product_id)


def product_culture_keys(reader: RegistryReader, config: ClickToRunConfiguration, product_id: str) -> List[str]:
    """!
    @brief List the culture subkeys (``en-us``, ``de-de``) installed for a product.
    """

    path = product_language_path(reader, config, product_id)
    if path is None:
        return []
    return [
        name
        for name in reader.enum_subkeys(constants.HKLM, path)
        if "-" in name and name.lower() != constants.C2R_NEUTRAL_LANGUAGE
    ]


def product_installed_app_ids(reader: RegistryReader, config: ClickToRunConfiguration, product_id: str) -> List[str]:
    """!
    @brief List the application IDs recorded under the product's ``x-none`` subtree.
    """

    path = product_language_path(reader, config, product_id)
    if path is None:
        return []
    return reader.enum_subkeys(constants.HKLM, join_path(path, constants.C2R_NEUTRAL_LANGUAGE))


__all__ = [
    "click_to_run_platform",
    "get_click_to_run_configuration",
    "product_culture_keys",
    "product_installed_app_ids",
    "product_language_path",
]
