"""Pipeline execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime


class PipelineStatus(str, Enum):
    """Execution status of a pipeline."""
    IDLE = "idle"
    IMPORTING = "importing"
    ROLLING_BACK = "rolling_back"
    STOPPING = "stopping"
    DISABLED = "disabled"

    @property
    def label(self) -> str:
        return {
            PipelineStatus.IDLE: "Idle",
            PipelineStatus.IMPORTING: "Importing",
            PipelineStatus.ROLLING_BACK: "Rolling back",
            PipelineStatus.STOPPING: "Stopping",
            PipelineStatus.DISABLED: "Disabled",
        }[self]


class RunResult(str, Enum):
    """Outcome of running an action against a pipeline."""
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    STOPPED = "stopped"
    FAILED = "failed"
    SKIPPED = "skipped"
    DISABLED = "disabled"


class RecordOutcome(str, Enum):
    """Per-record state tracked by the executor."""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class BatchAction(str, Enum):
    """Actions the orchestrator can run over a pipeline list."""
    IMPORT = "import"
    ROLLBACK = "rollback"


@dataclass
class PipelineRun:
    """Result of one action against one pipeline."""
    pipeline_id: str
    label: str = ""
    action: BatchAction = BatchAction.IMPORT
    result: RunResult = RunResult.COMPLETED
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_failed: int = 0
    records_deleted: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def count(self, outcome: RecordOutcome) -> None:
        """Count one processed record."""
        self.records_processed += 1
        if outcome == RecordOutcome.CREATED:
            self.records_created += 1
        elif outcome == RecordOutcome.UPDATED:
            self.records_updated += 1
        elif outcome == RecordOutcome.SKIPPED:
            self.records_skipped += 1
        else:
            self.records_failed += 1

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "pipeline_id": self.pipeline_id,
            "label": self.label,
            "action": self.action.value,
            "result": self.result.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "records_processed": self.records_processed,
            "records_created": self.records_created,
            "records_updated": self.records_updated,
            "records_skipped": self.records_skipped,
            "records_failed": self.records_failed,
            "records_deleted": self.records_deleted,
            "errors": self.errors,
        }


@dataclass
class BatchResult:
    """Aggregate result of running an action over an ordered pipeline list."""
    action: BatchAction
    success: bool = True
    runs: List[PipelineRun] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    @property
    def message(self) -> str:
        if self.success:
            return (
                f"The system successfully executed {self.action.value} "
                f"for {len(self.runs)} migrations."
            )
        return f"The system experienced a problem when executing {self.action.value}."

    @property
    def results(self) -> Dict[str, str]:
        """Get mapping of pipeline id to run result."""
        return {run.pipeline_id: run.result.value for run in self.runs}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "action": self.action.value,
            "success": self.success,
            "message": self.message,
            "results": self.results,
            "runs": [r.to_dict() for r in self.runs],
            "error": self.error,
        }
