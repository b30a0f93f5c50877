"""!
@brief Record types exchanged between detection, language, and synthesis stages.
@details Every record is a frozen dataclass with explicit optional fields so
partially-populated evidence (a Click-to-Run install without an update URL, an
MSI product without a culture) is visible in the type rather than hidden in an
open-ended mapping.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from . import constants


def normalize_platform(value: object, *, default: str = constants.PLATFORM_64) -> str:
    """!
    @brief Normalise architecture spellings to ``"32"`` or ``"64"``.
    @details ``x86``/``32``/``32-bit`` map to ``"32"``; ``x64``/``64``/
    ``amd64``/``64-bit`` map to ``"64"``; anything else yields ``default``.
    """

    text = str(value or "").strip().lower()
    if text in {"x86", "32", "32-bit", "32bit"}:
        return constants.PLATFORM_32
    if text in {"x64", "64", "64-bit", "64bit", "amd64"}:
        return constants.PLATFORM_64
    return default


@dataclass(frozen=True)
class InstalledProduct:
    """!
    @brief One Office component found in the installer records.
    @details Identity is the install path compared case-insensitively; see
    :meth:`identity`.
    """

    display_name: str
    version: str
    install_path: str
    is_click_to_run: bool
    bitness: str
    product_code: str = ""
    client_culture: str | None = None
    updates_enabled: bool | None = None
    update_url: str | None = None
    is_primary: bool = False

    @property
    def identity(self) -> str:
        return self.install_path.lower()

    def to_dict(self) -> Dict[str, object]:
        """!
        @brief Convert the record to a JSON-serialisable dictionary.
        """

        payload: Dict[str, object] = {
            "display_name": self.display_name,
            "version": self.version,
            "install_path": self.install_path,
            "click_to_run": self.is_click_to_run,
            "bitness": self.bitness,
            "primary": self.is_primary,
        }
        if self.product_code:
            payload["product_code"] = self.product_code
        if self.client_culture:
            payload["client_culture"] = self.client_culture
        if self.updates_enabled is not None:
            payload["updates_enabled"] = self.updates_enabled
        if self.update_url:
            payload["update_url"] = self.update_url
        return payload


@dataclass(frozen=True)
class StreamingInstallRecord:
    """!
    @brief Click-to-Run settings recorded beneath one Office version key.
    """

    install_path: str
    platform: str | None = None
    client_culture: str | None = None
    updates_enabled: bool | None = None
    update_url: str | None = None


@dataclass(frozen=True)
class OfficeSurvey:
    """!
    @brief Everything the installation survey learned about one host.
    @details ``products`` is the filtered result; the remaining fields keep the
    evidence collected from the Office version keys so later stages can reuse
    it without walking the registry again.
    """

    products: Tuple[InstalledProduct, ...] = ()
    versions: Tuple[str, ...] = ()
    config_component_ids: Tuple[str, ...] = ()
    install_roots: Tuple[str, ...] = ()
    package_names: Tuple[str, ...] = ()
    streaming_installs: Tuple[StreamingInstallRecord, ...] = ()
    version_cultures: Mapping[str, str] = field(default_factory=dict)

    @property
    def primary(self) -> InstalledProduct | None:
        return next((product for product in self.products if product.is_primary), None)

    @property
    def streaming_install_paths(self) -> Tuple[str, ...]:
        return tuple(record.install_path for record in self.streaming_installs)

    def __bool__(self) -> bool:
        return bool(self.products)


@dataclass(frozen=True)
class ClickToRunConfiguration:
    """!
    @brief Active configuration of the Click-to-Run runtime, or its legacy equivalent.
    @details ``installed`` is ``True`` only when a Click-to-Run root was found.
    Configurations derived from MSI installs carry ``source="msi"`` and fill
    ``platform``, ``product_release_ids`` and ``client_culture``.
    """

    installed: bool = False
    source: str = "c2r"
    platform: str = constants.PLATFORM_64
    client_culture: str | None = None
    product_release_ids: Tuple[str, ...] = ()
    version: str | None = None
    install_path: str | None = None
    updates_enabled: bool | None = None
    update_url: str | None = None
    update_deadline: str | None = None
    target_version: str | None = None
    cdn_base_url: str | None = None
    update_channel: str | None = None
    root_key_path: str | None = None
    config_key_path: str | None = None

    @property
    def is_msi(self) -> bool:
        return self.source == "msi"


@dataclass(frozen=True)
class LanguageSet:
    """!
    @brief Primary language plus the ordered, unique additional languages.
    """

    primary: str
    additional: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.primary in self.additional:
            raise ValueError(f"Primary language {self.primary!r} repeated in additional languages")

    @property
    def all(self) -> Tuple[str, ...]:
        return (self.primary, *self.additional)


__all__ = [
    "ClickToRunConfiguration",
    "InstalledProduct",
    "LanguageSet",
    "OfficeSurvey",
    "StreamingInstallRecord",
    "normalize_platform",
]
