import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, List, Optional, Tuple
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.models import EncodeRequest, ExportResult
from rasterkit.features.geometry.models import ResizeConfig
from rasterkit.kernel.system.config import DEFAULT_AUTO_ENHANCE, DEFAULT_ENCODE_REQUEST


class BatchOperation(StrEnum):
    CONVERT = "convert"
    RESIZE = "resize"
    COMPRESS = "compress"
    ENHANCE = "enhance"
    EDIT = "edit"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]

    def pipeline(self, params: "OperationParameters") -> Tuple[Any, ...]:
        """
        Steps an item runs. RESIZE appends its target size and refuses to run
        without one; ENHANCE falls back to one-click auto-enhance.
        """
        steps = tuple(params.steps)
        if self == BatchOperation.RESIZE:
            if params.width is not None or params.height is not None:
                steps += (ResizeConfig(params.width, params.height),)
            if not any(isinstance(s, ResizeConfig) for s in steps):
                raise InvalidParameterError("Resize item needs a target width or height")
        elif self == BatchOperation.ENHANCE and not steps:
            steps = (DEFAULT_AUTO_ENHANCE,)
        return steps


_PREFIXES = {
    BatchOperation.CONVERT: "",
    BatchOperation.RESIZE: "resized_",
    BatchOperation.COMPRESS: "compressed_",
    BatchOperation.ENHANCE: "enhanced_",
    BatchOperation.EDIT: "edited_",
}


class BatchStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"


class ItemStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationParameters:
    """
    steps: ordered pipeline step configs.
    encode: target container (COMPRESS always writes JPEG at encode.quality).
    max_bytes: COMPRESS size budget.
    width, height: RESIZE target; one side alone keeps the aspect ratio.
    """

    steps: Tuple[Any, ...] = ()
    encode: EncodeRequest = DEFAULT_ENCODE_REQUEST
    max_bytes: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class BatchItem:
    source: bytes
    name: str
    operation: BatchOperation = BatchOperation.CONVERT
    parameters: OperationParameters = field(default_factory=OperationParameters)
    hint: Optional[str] = None


@dataclass
class ItemResult:
    index: int
    name: str
    status: ItemStatus = ItemStatus.PENDING
    output: Optional[ExportResult] = None
    error: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, repr=False)

    @property
    def output_name(self) -> Optional[str]:
        return self.output.filename if self.output else None

    @property
    def data(self) -> Optional[bytes]:
        return self.output.data if self.output else None


@dataclass(frozen=True)
class BatchProgress:
    completed: int
    total: int
    name: str = ""

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0

    @property
    def percent(self) -> float:
        return 100.0 * self.fraction


@dataclass
class BatchRun:
    """
    State of a single run() / run_async() call.
    """

    progress: BatchProgress
    status: BatchStatus = BatchStatus.RUNNING

    def advance(self, name: str) -> BatchProgress:
        self.progress = BatchProgress(self.progress.completed + 1, self.progress.total, name)
        return self.progress


def _unique_name(name: str, taken: Dict[str, Any]) -> str:
    if name not in taken:
        return name
    stem, ext = os.path.splitext(name)
    i = 1
    while f"{stem} ({i}){ext}" in taken:
        i += 1
    return f"{stem} ({i}){ext}"


@dataclass
class BatchResult:
    status: BatchStatus
    items: List[ItemResult]

    @property
    def done(self) -> List[ItemResult]:
        return [r for r in self.items if r.status == ItemStatus.DONE]

    @property
    def failed(self) -> List[ItemResult]:
        return [r for r in self.items if r.status == ItemStatus.FAILED]

    def outputs(self) -> Dict[str, bytes]:
        """
        filename -> bytes for the archiving collaborator.
        """
        res: Dict[str, bytes] = {}
        for item in self.done:
            if item.output is not None:
                res[_unique_name(item.output.filename, res)] = item.output.data
        return res

    def failures(self) -> Dict[str, str]:
        res: Dict[str, str] = {}
        for item in self.failed:
            res[_unique_name(item.name, res)] = item.error or "unknown error"
        return res
