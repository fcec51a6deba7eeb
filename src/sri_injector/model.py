# src/sri_injector/model.py
import codecs
import logging
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sri_injector.exceptions import ConfigurationError
from sri_injector.services.digest_service import SUPPORTED_ALGORITHMS

logger = logging.getLogger(__name__)


class FailureReason(str, Enum):
    FILE_READ = "file_read"
    FILE_WRITE = "file_write"
    LOCAL_READ = "local_read"
    EXTERNAL_FETCH = "external_fetch"


class OutcomeStatus(str, Enum):
    INJECTED = "injected"
    EXCLUDED = "excluded"
    SKIPPED = "skipped"


class IntegrityOptions(BaseModel):
    """
    Immutable options for one build invocation.
    Built once by `build_options` and passed explicitly to every component.
    """
    model_config = ConfigDict(frozen=True)

    algorithm: str = Field(default="sha256")
    charset: str = Field(default="utf-8", description="Encoding used to read and write HTML files.")
    timeout: float = Field(default=30.0, gt=0, description="Total timeout (s) for one external fetch.")
    concurrency: int = Field(default=50, ge=1, description="Max simultaneous external fetches.")
    show_progress: bool = Field(default=False)

    @field_validator("algorithm", mode="before")
    @classmethod
    def _validate_algorithm(cls, v):
        name = str(v).strip().lower()
        if name not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported integrity algorithm '{v}'. Expected one of: {', '.join(SUPPORTED_ALGORITHMS)}"
            )
        return name

    @field_validator("charset", mode="before")
    @classmethod
    def _validate_charset(cls, v):
        try:
            codecs.lookup(str(v))
        except LookupError:
            raise ConfigurationError(f"Unknown charset '{v}'")
        return str(v)


class BuildAsset(BaseModel):
    """Descriptor for one emitted file, as handed over by the build pipeline."""
    file_name: str
    type: str = "asset"


class ResolvedResource(BaseModel):
    """Bytes obtained for a reference, or an explicit absence with its reason."""
    reference: str
    location: Optional[str] = None
    content: Optional[bytes] = None
    reason: Optional[FailureReason] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.content is not None


class Diagnostic(BaseModel):
    level: str = "warning"
    reason: Optional[FailureReason] = None
    file: str
    reference: Optional[str] = None
    message: str

    def format(self) -> str:
        target = f" ({self.reference})" if self.reference else ""
        reason = self.reason.value if self.reason else self.level
        return f"[{reason}] {self.file}{target}: {self.message}"


class ElementOutcome(BaseModel):
    tag: str
    reference: str
    status: OutcomeStatus
    integrity: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None


class FileReport(BaseModel):
    file: str
    written: bool = False
    outcomes: List[ElementOutcome] = Field(default_factory=list)
    diagnostics: List[Diagnostic] = Field(default_factory=list)


class IntegrityReport(BaseModel):
    """Aggregated result of one build invocation."""
    output_dir: str
    files: List[FileReport] = Field(default_factory=list)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for f in self.files for d in f.diagnostics]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == "warning"]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == "error"]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def injected_count(self) -> int:
        return sum(
            1 for f in self.files for o in f.outcomes if o.status == OutcomeStatus.INJECTED
        )
