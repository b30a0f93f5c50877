"""!
@brief Per-host generation pipeline and batch driver.
@details For each host: open a registry reader, survey installations, read
the Click-to-Run configuration (falling back to the MSI inspector), resolve
languages, synthesize the document, then return it or write it to disk.
Hosts are processed one after another and share nothing but the output
naming scheme.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Sequence, Tuple

from . import logging_ext
from .c2r_config import get_click_to_run_configuration
from .detect import survey_installations
from .languages import LanguagePolicy, build_language_set
from .models import InstalledProduct
from .msi_config import get_msi_configuration
from .registry_tools import RegistryReader, open_reader
from .synthesizer import load_default_document, synthesize_configuration

ReaderFactory = Callable[..., RegistryReader]


@dataclass
class GenerationOptions:
    """!
    @brief Caller-selected knobs shared by every host in a batch.
    @details ``default_configuration`` of ``None`` selects the packaged
    default document and an empty string disables the fallback.
    """

    language_policy: LanguagePolicy = LanguagePolicy.ALL_IN_USE
    output_path: Path | None = None
    include_update_path_as_source_path: bool = False
    default_configuration: str | None = None
    primary_language: str | None = None
    show_all_products: bool = False
    username: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """!
    @brief Document produced for one host.
    """

    configuration_xml: str
    languages: Tuple[str, ...]
    computer_name: str
    output_path: Path | None = None
    products: Tuple[InstalledProduct, ...] = ()


@dataclass
class HostOutcome:
    host: str
    result: GenerationResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    outcomes: List[HostOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[HostOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def results(self) -> List[GenerationResult]:
        return [outcome.result for outcome in self.outcomes if outcome.result is not None]


def output_path_for_host(output_path: Path | None, host: str, *, multiple_hosts: bool) -> Path | None:
    """!
    @brief Name the per-host output file.
    @details With several hosts the file becomes ``<host>_<basename>`` in the
    same directory.
    """

    if output_path is None:
        return None
    path = Path(output_path)
    if not multiple_hosts:
        return path
    return path.with_name(f"{host}_{path.name}")


def generate_configuration(
    host: str | None = None,
    options: GenerationOptions | None = None,
    *,
    output_path: Path | None = None,
    reader_factory: ReaderFactory = open_reader,
) -> GenerationResult:
    """!
    @brief Run the full pipeline for one host.
    @param host Target computer; ``None`` selects the local machine.
    @param options Generation options; defaults apply when omitted.
    @param output_path Overrides ``options.output_path`` for this host.
    @param reader_factory Callable returning a :class:`RegistryReader`.
    @returns :class:`GenerationResult` with the rendered document.
    @throws HostUnreachableError When the host registry cannot be opened.
    @throws UnresolvableLanguageError When no primary language resolves.
    """

    options = options or GenerationOptions()
    target_path = output_path if output_path is not None else options.output_path
    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    with reader_factory(host, username=options.username, password=options.password) as reader:
        survey = survey_installations(reader, show_all_products=True)
        config = get_click_to_run_configuration(reader)
        if not config.installed:
            config = get_msi_configuration(reader, survey)

        languages = build_language_set(
            reader,
            options.language_policy,
            config,
            config.product_release_ids,
            primary_override=options.primary_language,
        )

        default_document = None
        # Also skipped when a Click-to-Run runtime is present without products.
        if not survey.products and not config.installed:
            default_document = load_default_document(options.default_configuration)

        document = synthesize_configuration(
            reader,
            survey,
            config,
            languages,
            default_document=default_document,
            include_update_path_as_source_path=options.include_update_path_as_source_path,
        )
        computer_name = reader.host

    written: Path | None = None
    if target_path is not None:
        written = document.write(target_path)
        human_logger.info("%s: configuration written to %s", computer_name, written)

    products = survey.products if options.show_all_products else tuple(p for p in survey.products if p.is_primary)
    machine_logger.info(
        "configuration_generated",
        extra={
            "event": "configuration_generated",
            "host": computer_name,
            "languages": list(languages.all),
            "output_path": str(written) if written else None,
        },
    )
    return GenerationResult(
        configuration_xml=document.to_xml(),
        languages=languages.all,
        computer_name=computer_name,
        output_path=written,
        products=products,
    )


def generate_for_hosts(
    hosts: Sequence[str | None],
    options: GenerationOptions | None = None,
    *,
    reader_factory: ReaderFactory = open_reader,
) -> BatchResult:
    """!
    @brief Generate configurations for several hosts sequentially.
    @details With one host a failure is logged and re-raised. With several,
    each failure is logged against its host and the batch continues. Any
    exception counts as a host failure, including registry ``OSError``s and
    malformed default documents.
    """

    options = options or GenerationOptions()
    targets: List[str | None] = list(hosts) or [None]
    multiple = len(targets) > 1
    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    batch = BatchResult()
    for host in targets:
        label = host or "localhost"
        try:
            result = generate_configuration(
                host,
                options,
                output_path=output_path_for_host(options.output_path, label, multiple_hosts=multiple),
                reader_factory=reader_factory,
            )
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            human_logger.error("%s", message if message.startswith(f"{label}:") else f"{label}: {message}")
            machine_logger.error(
                "host_failed",
                extra={"event": "host_failed", "host": label, "error": str(exc), "error_type": type(exc).__name__},
            )
            if not multiple:
                raise
            batch.outcomes.append(HostOutcome(host=label, error=exc))
            continue
        batch.outcomes.append(HostOutcome(host=label, result=result))
    return batch


__all__ = [
    "BatchResult",
    "GenerationOptions",
    "GenerationResult",
    "HostOutcome",
    "generate_configuration",
    "generate_for_hosts",
    "output_path_for_host",
]
