# src/sri_injector/controllers/integrity_controller.py
import asyncio
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

from bs4 import ParserRejectedMarkup
from tqdm.asyncio import tqdm

from sri_injector.dom import CandidateElement, HtmlDocument
from sri_injector.model import (
    Diagnostic, ElementOutcome, FailureReason, FileReport, IntegrityOptions,
    IntegrityReport, OutcomeStatus
)
from sri_injector.services.http_request_service import HttpRequestService
from sri_injector.services.integrity_injector_service import IntegrityInjectorService
from sri_injector.services.resource_resolver_service import ResourceResolverService

logger = logging.getLogger(__name__)

HTML_EXTENSIONS = (".html", ".htm")


class IntegrityController:
    """
    Drives one build's SRI pass: selects the emitted HTML files, and for each of
    them parses, resolves and hashes every candidate element, then writes the file back.

    Files and the elements inside a file are processed concurrently. Failures are
    contained at the element or file level and end up in the IntegrityReport;
    `process_build` does not raise for them.
    """

    def __init__(self, options: IntegrityOptions, http_service: Optional[HttpRequestService] = None):
        self.options = options
        self.injector = IntegrityInjectorService(options)
        self._http_service = http_service

    @staticmethod
    def select_html_files(bundle: Union[Mapping[str, Any], Iterable[str]]) -> List[str]:
        """Returns the emitted file names with an HTML extension, in bundle order."""
        return [name for name in bundle if str(name).lower().endswith(HTML_EXTENSIONS)]

    async def process_build(
            self,
            output_dir: Union[str, Path],
            bundle: Union[Mapping[str, Any], Iterable[str]]
    ) -> IntegrityReport:
        """
        Runs the SRI pass over one build output.

        Args:
            output_dir: The output root; local references resolve against it.
            bundle: Emitted file names (relative to output_dir), optionally mapped to asset descriptors.

        Returns:
            IntegrityReport: One FileReport per HTML file plus aggregated diagnostics.
        """
        output_path = Path(output_dir)
        report = IntegrityReport(output_dir=str(output_path))

        html_files = self.select_html_files(bundle)
        if not html_files:
            logger.debug("No HTML files in build output %s.", output_path)
            return report

        http_service = self._http_service or HttpRequestService(self.options)
        async with http_service as http:
            resolver = ResourceResolverService(output_path, http)
            tasks = [self._process_file(output_path, name, resolver) for name in html_files]

            if self.options.show_progress:
                file_reports = await tqdm.gather(*tasks, desc="Injecting SRI", unit=" file")
            else:
                file_reports = await asyncio.gather(*tasks)

        report.files = list(file_reports)
        logger.info(
            f"SRI: {report.injected_count} element(s) updated in {len(report.files)} HTML file(s) "
            f"({len(report.warnings)} warning(s), {len(report.errors)} error(s))."
        )
        return report

    # =========================================================================
    #  FILE LEVEL
    # =========================================================================
    async def _process_file(
            self, output_dir: Path, file_name: str, resolver: ResourceResolverService
    ) -> FileReport:
        file_report = FileReport(file=file_name)
        file_path = output_dir / file_name
        loop = asyncio.get_running_loop()

        # --- Read ---
        try:
            html = await loop.run_in_executor(None, self._read_text, file_path)
        except (OSError, UnicodeDecodeError) as e:
            self._add_file_error(file_report, FailureReason.FILE_READ, f"Error reading HTML file {file_path}: {e}")
            return file_report

        try:
            document = HtmlDocument.parse(html)
        except ParserRejectedMarkup as e:
            self._add_file_error(file_report, FailureReason.FILE_READ, f"Could not parse HTML file {file_path}: {e}")
            return file_report

        # --- Elements ---
        candidates = document.candidates()
        outcomes = await asyncio.gather(
            *(self._process_element(element, resolver, file_name) for element in candidates)
        )
        file_report.outcomes = list(outcomes)
        file_report.diagnostics.extend(o.diagnostic for o in outcomes if o.diagnostic)

        # --- Write ---
        new_html = document.serialize()
        if new_html == html:
            logger.debug("%s unchanged; not rewritten.", file_name)
            return file_report

        try:
            await loop.run_in_executor(None, self._write_text_atomic, file_path, new_html)
            file_report.written = True
        except (OSError, UnicodeEncodeError) as e:
            self._add_file_error(file_report, FailureReason.FILE_WRITE, f"Error writing HTML file {file_path}: {e}")

        return file_report

    def _read_text(self, path: Path) -> str:
        # newline="" keeps CRLF line endings intact through the round trip.
        with open(path, "r", encoding=self.options.charset, newline="") as f:
            return f.read()

    def _write_text_atomic(self, path: Path, text: str) -> None:
        """Writes via a temp file + os.replace, so a failed write never leaves a half-written file."""
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=self.options.charset, newline="") as f:
                f.write(text)
            shutil.copymode(path, tmp_name)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    @staticmethod
    def _add_file_error(file_report: FileReport, reason: FailureReason, message: str) -> None:
        logger.error(message)
        file_report.diagnostics.append(
            Diagnostic(level="error", reason=reason, file=file_report.file, message=message)
        )

    # =========================================================================
    #  ELEMENT LEVEL
    # =========================================================================
    async def _process_element(
            self, element: CandidateElement, resolver: ResourceResolverService, file_name: str
    ) -> ElementOutcome:
        # Every candidate is resolved; the injector reports absence before it applies the rel exclusion.
        try:
            resource = await resolver.resolve(element.reference)
            outcome = self.injector.inject(element, resource, file_name)
        except Exception as e:
            logger.error(f"Unexpected error processing {element.reference} in {file_name}: {e}", exc_info=True)
            return ElementOutcome(
                tag=element.kind.value,
                reference=element.reference,
                status=OutcomeStatus.SKIPPED,
                diagnostic=Diagnostic(
                    level="error", file=file_name, reference=element.reference, message=str(e)
                ),
            )

        if outcome.diagnostic:
            logger.warning(outcome.diagnostic.format())
        return outcome
