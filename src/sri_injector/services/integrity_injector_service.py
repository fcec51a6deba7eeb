# src/sri_injector/services/integrity_injector_service.py
import logging

from sri_injector.dom.core import CandidateElement, ElementKind
from sri_injector.model import (
    Diagnostic, ElementOutcome, IntegrityOptions, OutcomeStatus, ResolvedResource
)
from sri_injector.services.digest_service import compute_integrity

logger = logging.getLogger(__name__)

LINK_REL_ALLOW_LIST = frozenset({"stylesheet", "preload", "modulepreload"})


class IntegrityInjectorService:
    """
    Decides whether a candidate element receives integrity metadata and sets it.

    Only the `integrity` attribute is ever written; a previous value is replaced.
    """

    def __init__(self, options: IntegrityOptions):
        self.options = options

    @staticmethod
    def qualifies(element: CandidateElement) -> bool:
        """Scripts always qualify; links only with a rel from LINK_REL_ALLOW_LIST."""
        if element.kind == ElementKind.SCRIPT:
            return True
        if element.kind == ElementKind.LINK:
            rel_tokens = set((element.rel or "").lower().split())
            return bool(rel_tokens & LINK_REL_ALLOW_LIST)
        return False

    def inject(
            self,
            element: CandidateElement,
            resource: ResolvedResource,
            file_name: str = ""
    ) -> ElementOutcome:
        """
        Applies the injection policy to one element.

        Args:
            element: The candidate element to update.
            resource: The resolved bytes, or an absence.
            file_name: The HTML file the element lives in (for diagnostics).

        Returns:
            ElementOutcome: INJECTED, EXCLUDED (link rel out of scope) or SKIPPED
            (resolution failed, carries a warning diagnostic).
        """
        outcome = ElementOutcome(
            tag=element.kind.value, reference=element.reference, status=OutcomeStatus.SKIPPED
        )

        if not resource.ok:
            outcome.diagnostic = Diagnostic(
                level="warning",
                reason=resource.reason,
                file=file_name,
                reference=element.reference,
                message=resource.error or "Resource could not be resolved",
            )
            return outcome

        if not self.qualifies(element):
            outcome.status = OutcomeStatus.EXCLUDED
            return outcome

        integrity = compute_integrity(resource.content, self.options.algorithm)
        element.set_attribute("integrity", integrity)
        logger.debug("Injected %s into <%s> %s", integrity, element.tag_name, element.reference)

        outcome.status = OutcomeStatus.INJECTED
        outcome.integrity = integrity
        return outcome
