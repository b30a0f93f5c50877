"""!
@brief Assemble a configuration document from the resolved installation state.
@details Combines the survey, the Click-to-Run (or MSI-derived) configuration
and the language set into a :class:`ConfigurationDocument`. When nothing was
detected on the host a caller-supplied default document is borrowed instead
and only languages are applied to it.
"""
from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Iterable, List

from . import c2r_config, constants, logging_ext
from .models import ClickToRunConfiguration, LanguageSet, OfficeSurvey
from .odt_document import ConfigurationDocument
from .registry_tools import RegistryReader


def excluded_click_to_run_apps(installed_app_ids: Iterable[str]) -> List[str]:
    """!
    @brief Catalog apps with no installed ID starting with the app name.
    """

    installed = [app_id.lower() for app_id in installed_app_ids]
    return [
        app
        for app in constants.C2R_EXCLUDABLE_APPS
        if not any(app_id.startswith(app.lower()) for app_id in installed)
    ]


def excluded_msi_apps(display_names: Iterable[str]) -> List[str]:
    """!
    @brief Catalog apps that no surveyed display name mentions.
    @details Display names read ``Microsoft Word 2016`` rather than starting
    with the app, so a substring test is used.
    """

    names = [name.lower() for name in display_names]
    return [app for app in constants.MSI_EXCLUDABLE_APPS if not any(app.lower() in name for name in names)]


def packaged_default_configuration() -> Path:
    """!
    @brief Location of the default document shipped with the package.
    """

    return Path(str(resources.files(__package__).joinpath(constants.DEFAULT_CONFIGURATION_FILENAME)))


def load_default_document(path: str | Path | None) -> ConfigurationDocument | None:
    """!
    @brief Load the fallback document, or ``None`` when disabled or missing.
    @details ``None`` selects the packaged document; an empty string disables
    the fallback.
    """

    if path is None:
        path = packaged_default_configuration()
    elif not str(path).strip():
        return None

    candidate = Path(path)
    if not candidate.is_file():
        logging_ext.get_human_logger().warning("Default configuration %s not found", candidate)
        return None
    return ConfigurationDocument.from_file(candidate)


def _apply_languages(document: ConfigurationDocument, product_ids: Iterable[str], languages: LanguageSet) -> None:
    for product_id in product_ids:
        for language in languages.all:
            document.upsert_language(product_id, language)


def synthesize_configuration(
    reader: RegistryReader,
    survey: OfficeSurvey,
    config: ClickToRunConfiguration,
    languages: LanguageSet,
    *,
    default_document: ConfigurationDocument | None = None,
    include_update_path_as_source_path: bool = False,
) -> ConfigurationDocument:
    """!
    @brief Build the configuration document for one host.
    @param reader Registry reader bound to the target host.
    @param survey Surveyed products.
    @param config Click-to-Run configuration, or the MSI-derived equivalent.
    @param languages Resolved language set applied to every product.
    @param default_document Document borrowed when nothing is installed.
    @param include_update_path_as_source_path Mirror ``UpdateUrl`` into ``SourcePath``.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    # A Click-to-Run runtime without surveyed products still describes an
    # install, so the fallback also requires the runtime to be absent.
    if not survey.products and not config.installed and default_document is not None:
        product_ids = default_document.product_ids()
        human_logger.info(
            "%s: no Office installation detected; using default configuration with %s",
            reader.host,
            ", ".join(product_ids) or "no products",
        )
        _apply_languages(default_document, product_ids, languages)
        machine_logger.info(
            "configuration_synthesized",
            extra={
                "event": "configuration_synthesized",
                "host": reader.host,
                "source": "default",
                "platform": default_document.platform,
                "products": product_ids,
            },
        )
        return default_document

    document = ConfigurationDocument()
    document.ensure_add(version=config.version if config.installed else None, platform=config.platform)
    if include_update_path_as_source_path and config.update_url:
        document.set_source_path(config.update_url)

    product_ids = list(config.product_release_ids) or [constants.DEFAULT_PRODUCT_ID]
    if not survey.products and not config.installed:
        human_logger.warning(
            "%s: no Office installation detected and no default configuration; emitting %s",
            reader.host,
            ", ".join(product_ids),
        )
        _apply_languages(document, product_ids, languages)
        return document

    display_names = [product.display_name for product in survey.products]
    for product_id in product_ids:
        document.upsert_product(product_id)
        for language in languages.all:
            document.upsert_language(product_id, language)
        if config.installed:
            excluded = excluded_click_to_run_apps(c2r_config.product_installed_app_ids(reader, config, product_id))
        else:
            excluded = excluded_msi_apps(display_names)
        for app in excluded:
            document.upsert_exclude_app(product_id, app)

    update_values = (config.updates_enabled, config.update_url, config.target_version, config.update_deadline)
    if config.installed and any(value is not None and str(value).strip() for value in update_values):
        document.upsert_updates(
            enabled=config.updates_enabled,
            update_path=config.update_url,
            target_version=config.target_version,
            deadline=config.update_deadline,
        )

    machine_logger.info(
        "configuration_synthesized",
        extra={
            "event": "configuration_synthesized",
            "host": reader.host,
            "source": config.source,
            "platform": config.platform,
            "products": product_ids,
        },
    )
    return document


__all__ = [
    "excluded_click_to_run_apps",
    "excluded_msi_apps",
    "load_default_document",
    "packaged_default_configuration",
    "synthesize_configuration",
]
