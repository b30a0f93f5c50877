"""!
@brief Installation survey tests.
@details Exercise bitness precedence, install-root filtering, primary product
selection, and de-duplication against fake registry layouts.
"""
from __future__ import annotations

import pytest

from conftest import C2R_INSTALL_PATH, OFFICE16, UNINSTALL, UNINSTALL_WOW, install_click_to_run
from odt_generator import constants, detect

MSI_ROOT = r"C:\Program Files (x86)\Microsoft Office"
PROPLUS_CODE = "{90160000-0011-0000-0000-0000000FF1CE}"
VISIO_CODE = "{90160000-0051-0000-0000-0000000FF1CE}"


def _install_msi_office(reader) -> None:
    reader.add_key(constants.HKLM, OFFICE16 + r"\Common\InstallRoot", {"Path": MSI_ROOT + "\\Office16\\"})
    reader.add_key(constants.HKLM, OFFICE16 + rf"\Common\Config\{PROPLUS_CODE}")
    reader.add_key(constants.HKLM, OFFICE16 + r"\Common\LanguageResources", {"SKULanguage": 1031})
    reader.add_key(constants.HKLM, OFFICE16 + r"\Common\InstalledPackages\90160000-0011-0000-0000-0000000FF1CE", {"": "Microsoft Office Professional Plus 2016"})
    reader.add_key(constants.HKLM, OFFICE16 + r"\Word\InstallRoot", {"Path": MSI_ROOT + "\\Office16\\"})
    reader.add_key(
        constants.HKLM,
        UNINSTALL + "\\" + PROPLUS_CODE,
        {
            "DisplayName": "Microsoft Office Professional Plus 2016",
            "DisplayVersion": "16.0.4266.1001",
            "InstallLocation": MSI_ROOT + "\\",
        },
    )
    reader.add_key(
        constants.HKLM,
        UNINSTALL + "\\" + VISIO_CODE,
        {
            "DisplayName": "Microsoft Visio Professional 2016",
            "DisplayVersion": "16.0.4266.1001",
            "InstallLocation": MSI_ROOT + "\\",
        },
    )
    reader.add_key(
        constants.HKLM,
        UNINSTALL + r"\{11111111-2222-3333-4444-555555555555}",
        {"DisplayName": "Unrelated Tool", "InstallLocation": r"C:\Program Files\Other"},
    )
    reader.add_key(constants.HKLM, UNINSTALL + r"\NoLocation", {"DisplayName": "Microsoft Office Stub"})


class TestDetermineBitness:
    """Bitness precedence for one uninstall entry."""

    def test_guid_suffix_wins_over_modify_path(self) -> None:
        """The product-code convention beats the ModifyPath flag."""
        code = "{90160000-0011-0000-1000-0000000FF1CE}"
        assert detect.determine_bitness(code, "setup.exe platform=x86", "32", from_wow64=False) == "64"
        code = "{90160000-0011-0000-0000-0000000FF1CE}"
        assert detect.determine_bitness(code, "setup.exe platform=x64", "64", from_wow64=False) == "32"

    def test_modify_path_flag_then_os(self) -> None:
        """Without a recognised code the ModifyPath flag, then OS bitness, decide."""
        assert detect.determine_bitness("O365ProPlusRetail", "OfficeC2RClient.exe platform=x86", "64", from_wow64=False) == "32"
        assert detect.determine_bitness("O365ProPlusRetail", "OfficeC2RClient.exe platform=X64", "32", from_wow64=False) == "64"
        assert detect.determine_bitness("O365ProPlusRetail", None, "32", from_wow64=False) == "32"

    def test_wow64_origin_overrides_everything(self) -> None:
        """Entries from the 32-bit view are always 32-bit."""
        code = "{90160000-0011-0000-1000-0000000FF1CE}"
        assert detect.determine_bitness(code, "platform=x64", "64", from_wow64=True) == "32"
        assert detect.determine_bitness(code, None, "64", from_wow64=True, streaming_platform="x64") == "32"

    def test_streaming_platform_replaces_entry_evidence(self) -> None:
        code = "{90160000-0011-0000-1000-0000000FF1CE}"
        assert detect.determine_bitness(code, "platform=x64", "64", from_wow64=False, streaming_platform="x86") == "32"


class TestPathMatching:
    """Install-location prefix checks."""

    def test_parentheses_are_literal(self) -> None:
        """``Program Files (x86)`` must not be treated as a regex group."""
        assert detect.path_matches_root(r"C:\Program Files (x86)\Microsoft Office\\", MSI_ROOT)
        assert not detect.path_matches_root(r"C:\Program Files x86\Microsoft Office", MSI_ROOT)

    def test_prefix_requires_segment_boundary(self) -> None:
        """A sibling folder sharing a prefix is not beneath the root."""
        assert detect.path_matches_root(r"c:\program files\microsoft office\root", r"C:\Program Files\Microsoft Office")
        assert not detect.path_matches_root(r"C:\Program Files\Microsoft Office Tools", r"C:\Program Files\Microsoft Office")


class TestSurveyInstallations:
    """End-to-end survey over fake registries."""

    def test_empty_registry_reports_nothing(self, registry) -> None:
        """No Office keys means no products and no evidence."""
        survey = detect.survey_installations(registry)
        assert not survey
        assert survey.primary is None
        assert survey.versions == ()

    def test_msi_primary_from_config_component(self, registry) -> None:
        """The config-listed, branded entry becomes the sole primary product."""
        _install_msi_office(registry)
        survey = detect.survey_installations(registry)

        assert [product.product_code for product in survey.products] == [PROPLUS_CODE]
        primary = survey.primary
        assert primary is not None
        assert primary.is_primary
        assert primary.bitness == "32"
        assert primary.client_culture == "de-de"
        assert not primary.is_click_to_run
        assert survey.versions == ("16.0",)
        assert survey.config_component_ids == (PROPLUS_CODE,)
        assert "microsoftofficeprofessionalplus2016" in survey.package_names
        assert survey.version_cultures == {"16.0": "de-de"}

    def test_show_all_products_keeps_components_under_roots(self, registry) -> None:
        """Non-primary suite components are returned on request; unrelated apps never are."""
        _install_msi_office(registry)
        survey = detect.survey_installations(registry, show_all_products=True)

        names = [product.display_name for product in survey.products]
        assert names == ["Microsoft Office Professional Plus 2016", "Microsoft Visio Professional 2016"]
        assert [product.is_primary for product in survey.products] == [True, False]

    def test_identical_entries_collapse(self, registry) -> None:
        """The same record seen in both registry views appears once."""
        _install_msi_office(registry)
        registry.add_key(
            constants.HKLM,
            UNINSTALL_WOW + "\\" + PROPLUS_CODE,
            {
                "DisplayName": "Microsoft Office Professional Plus 2016",
                "DisplayVersion": "16.0.4266.1001",
                "InstallLocation": MSI_ROOT + "\\",
            },
        )
        survey = detect.survey_installations(registry, show_all_products=True)
        codes = [product.product_code for product in survey.products]
        assert codes.count(PROPLUS_CODE) == 1

    def test_bitness_flag_does_not_leak_between_entries(self, registry) -> None:
        """A ModifyPath flag on one entry never decides the next entry's bitness."""
        registry.add_key(constants.HKLM, constants.OS_ENVIRONMENT_KEY, {"PROCESSOR_ARCHITECTURE": "AMD64"})
        registry.add_key(constants.HKLM, OFFICE16 + r"\Common\InstallRoot", {"Path": r"C:\Office\Office16"})
        registry.add_key(
            constants.HKLM,
            UNINSTALL + r"\FirstTool",
            {"DisplayName": "Microsoft Office First", "InstallLocation": r"C:\Office", "ModifyPath": "setup.exe platform=x86"},
        )
        registry.add_key(
            constants.HKLM,
            UNINSTALL + r"\SecondTool",
            {"DisplayName": "Microsoft Office Second", "InstallLocation": r"C:\Office"},
        )
        survey = detect.survey_installations(registry, show_all_products=True)
        bitness = {product.product_code: product.bitness for product in survey.products}
        assert bitness == {"FirstTool": "32", "SecondTool": "64"}

    def test_click_to_run_entry_takes_streaming_metadata(self, registry) -> None:
        """Streaming installs are primary through the install path and carry C2R settings."""
        install_click_to_run(registry, platform="x86")
        survey = detect.survey_installations(registry)

        primary = survey.primary
        assert primary is not None
        assert primary.is_click_to_run
        assert primary.bitness == "32"
        assert primary.client_culture == "en-us"
        assert primary.updates_enabled is True
        assert primary.update_url == r"\\share\office"
        assert survey.streaming_install_paths == (C2R_INSTALL_PATH,)

    def test_wow64_entry_at_streaming_path_stays_32_bit(self, registry) -> None:
        """The 32-bit registry view still wins over the runtime platform."""
        install_click_to_run(registry, platform="x64", with_uninstall_entry=False)
        registry.add_key(
            constants.HKLM,
            UNINSTALL_WOW + r"\O365ProPlusRetail - en-us",
            {
                "DisplayName": "Microsoft 365 Apps for enterprise - en-us",
                "DisplayVersion": "16.0.17328.20162",
                "InstallLocation": C2R_INSTALL_PATH,
                "ClickToRunComponent": 1,
            },
        )

        survey = detect.survey_installations(registry)

        assert [product.bitness for product in survey.products] == ["32"]
        assert survey.primary.is_click_to_run

    def test_unbranded_entries_are_never_primary(self, registry) -> None:
        """Without the brand marker no entry qualifies as primary."""
        install_click_to_run(registry, with_uninstall_entry=False)
        registry.add_key(
            constants.HKLM,
            UNINSTALL + r"\Helper",
            {"DisplayName": "Click-to-Run Helper", "InstallLocation": C2R_INSTALL_PATH},
        )
        survey = detect.survey_installations(registry)
        assert survey.products == ()
        all_products = detect.survey_installations(registry, show_all_products=True)
        assert [product.display_name for product in all_products.products] == ["Click-to-Run Helper"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("True", True), ("false", False), ("1", True), ("0", False), (None, None), ("maybe", None), (1, True)],
)
def test_parse_registry_bool(raw, expected) -> None:
    """!
    @brief Office's textual booleans are decoded leniently.
    """

    assert detect.parse_registry_bool(raw) is expected
