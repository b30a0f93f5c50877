"""!
@brief Tests for configuration assembly.
"""
from __future__ import annotations

from dataclasses import replace

from conftest import install_click_to_run
from odt_generator import c2r_config, constants, detect, synthesizer
from odt_generator.models import ClickToRunConfiguration, InstalledProduct, LanguageSet, OfficeSurvey
from odt_generator.odt_document import ConfigurationDocument

ENGLISH = LanguageSet(primary="en-us")


class TestExcludedApps:
    """Exclusion catalogs."""

    def test_click_to_run_prefix_match(self) -> None:
        """An app stays when any installed ID starts with its name."""
        excluded = synthesizer.excluded_click_to_run_apps(["excel.x-none", "Word.x-none", "OneDrive.x-none"])
        assert "Excel" not in excluded
        assert "Word" not in excluded
        assert "OneDrive" not in excluded
        assert excluded == ["Access", "Groove", "Lync", "OneNote", "Outlook", "PowerPoint", "Publisher"]

    def test_click_to_run_nothing_installed(self) -> None:
        assert synthesizer.excluded_click_to_run_apps([]) == list(constants.C2R_EXCLUDABLE_APPS)

    def test_msi_catalog_omits_onedrive(self) -> None:
        """The MSI test matches display names and never excludes OneDrive."""
        excluded = synthesizer.excluded_msi_apps(["Microsoft Excel MUI (German) 2016", "Microsoft Outlook 2016"])
        assert "OneDrive" not in excluded
        assert excluded == ["Access", "Groove", "Lync", "OneNote", "PowerPoint", "Publisher", "Word"]


class TestSynthesizeConfiguration:
    """Document assembly."""

    def test_x86_runtime_without_installed_apps(self, registry) -> None:
        """An empty ``x-none`` subtree excludes every catalog app on a 32-bit install."""
        install_click_to_run(registry, platform="x86", installed_apps=())
        survey = detect.survey_installations(registry)
        config = c2r_config.get_click_to_run_configuration(registry)

        document = synthesizer.synthesize_configuration(registry, survey, config, ENGLISH)

        assert document.platform == "32"
        assert document.product_ids() == ["O365ProPlusRetail"]
        assert document.exclude_apps("O365ProPlusRetail") == list(constants.C2R_EXCLUDABLE_APPS)
        assert document.languages("O365ProPlusRetail") == ["en-us"]
        assert document.add.get("Version") == "16.0.17328.20162"
        assert "SourcePath" not in document.add.attrib
        assert document.updates.attrib == {"Enabled": "TRUE", "UpdatePath": r"\\share\office"}

    def test_no_update_settings_means_no_updates_element(self, registry) -> None:
        install_click_to_run(registry)
        survey = detect.survey_installations(registry)
        config = replace(
            c2r_config.get_click_to_run_configuration(registry),
            updates_enabled=None,
            update_url=None,
            target_version=None,
            update_deadline=None,
        )

        document = synthesizer.synthesize_configuration(registry, survey, config, ENGLISH)

        assert document.updates is None
        assert "<Updates" not in document.to_xml()

    def test_update_path_mirrored_on_request(self, registry) -> None:
        install_click_to_run(registry)
        survey = detect.survey_installations(registry)
        config = c2r_config.get_click_to_run_configuration(registry)

        document = synthesizer.synthesize_configuration(
            registry, survey, config, LanguageSet("en-us", ("de-de",)), include_update_path_as_source_path=True
        )

        assert document.add.get("SourcePath") == r"\\share\office"
        assert document.languages("O365ProPlusRetail") == ["en-us", "de-de"]
        assert document.exclude_apps("O365ProPlusRetail") == []

    def test_default_document_used_when_nothing_detected(self, registry) -> None:
        """With no products the default document supplies products and platform."""
        default = ConfigurationDocument.from_string(
            '<Configuration><Add OfficeClientEdition="64"><Product ID="A"/><Product ID="B"/></Add></Configuration>'
        )
        document = synthesizer.synthesize_configuration(
            registry, OfficeSurvey(), ClickToRunConfiguration(source="msi"), LanguageSet("fr-fr", ("nl-nl",)),
            default_document=default,
        )

        assert document.platform == "64"
        assert document.product_ids() == ["A", "B"]
        assert document.languages("A") == ["fr-fr", "nl-nl"]
        assert document.languages("B") == ["fr-fr", "nl-nl"]

    def test_runtime_without_uninstall_entry_ignores_default(self, registry) -> None:
        """An installed runtime is described even when no suite product was surveyed."""
        install_click_to_run(registry, release_ids="ProPlus2021Volume", with_uninstall_entry=False)
        survey = detect.survey_installations(registry)
        config = c2r_config.get_click_to_run_configuration(registry)
        default = ConfigurationDocument.from_string(
            '<Configuration><Add OfficeClientEdition="64"><Product ID="A"/></Add></Configuration>'
        )

        document = synthesizer.synthesize_configuration(registry, survey, config, ENGLISH, default_document=default)

        assert survey.products == ()
        assert document is not default
        assert document.product_ids() == ["ProPlus2021Volume"]
        assert document.add.get("Version") == "16.0.17328.20162"

    def test_minimal_document_without_default(self, registry) -> None:
        """Nothing detected and no default still yields a valid document."""
        document = synthesizer.synthesize_configuration(
            registry, OfficeSurvey(), ClickToRunConfiguration(source="msi", product_release_ids=("O365ProPlusRetail",)), ENGLISH
        )
        assert document.product_ids() == ["O365ProPlusRetail"]
        assert document.exclude_apps("O365ProPlusRetail") == []
        assert document.updates is None

    def test_msi_install(self, registry) -> None:
        """MSI installs omit ``Version`` and exclude by display name."""
        survey = OfficeSurvey(
            products=(
                InstalledProduct(
                    display_name="Microsoft Office Professional Plus 2016",
                    version="16.0.4266.1001",
                    install_path=r"C:\Program Files\Microsoft Office",
                    is_click_to_run=False,
                    bitness="64",
                    is_primary=True,
                ),
                InstalledProduct(
                    display_name="Microsoft Word MUI (English) 2016",
                    version="16.0.4266.1001",
                    install_path=r"C:\Program Files\Microsoft Office",
                    is_click_to_run=False,
                    bitness="64",
                ),
            )
        )
        config = ClickToRunConfiguration(source="msi", platform="64", product_release_ids=("O365ProPlusRetail",))
        document = synthesizer.synthesize_configuration(registry, survey, config, ENGLISH)

        assert "Version" not in document.add.attrib
        assert "Word" not in document.exclude_apps("O365ProPlusRetail")
        assert "Excel" in document.exclude_apps("O365ProPlusRetail")
        assert document.updates is None


def test_load_default_document(tmp_path) -> None:
    """!
    @brief ``None`` loads the packaged default, blank disables, missing files are skipped.
    """

    packaged = synthesizer.load_default_document(None)
    assert packaged is not None
    assert packaged.product_ids() == [constants.DEFAULT_PRODUCT_ID]

    assert synthesizer.load_default_document("") is None
    assert synthesizer.load_default_document(tmp_path / "absent.xml") is None

    custom = tmp_path / "custom.xml"
    custom.write_text('<Configuration><Add OfficeClientEdition="32"/></Configuration>', encoding="utf-8")
    assert synthesizer.load_default_document(custom).platform == "32"
