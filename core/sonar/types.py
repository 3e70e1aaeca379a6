"""
Build model shared by the Sonar build step.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, TextIO, Type, TypeVar

A = TypeVar("A")


class BuildResult(Enum):
    """Build outcome, ordered from best to worst"""
    SUCCESS = 0
    UNSTABLE = 1
    FAILURE = 2
    NOT_BUILT = 3
    ABORTED = 4

    def is_worse_than(self, other: "BuildResult") -> bool:
        return self.value > other.value

    def __str__(self) -> str:
        return self.name


class CauseType(Enum):
    """What started a build"""
    SCM = "scm"
    UPSTREAM = "upstream"
    USER = "user"
    TIMER = "timer"
    REMOTE = "remote"
    SONAR = "sonar"


@dataclass(frozen=True)
class Cause:
    type: CauseType
    description: Optional[str] = None
    upstream_job: Optional[str] = None


@dataclass(frozen=True)
class ChangeLogEntry:
    commit_id: str
    author: str
    message: str = ""


class BuildContext(Protocol):
    """Read-only view of a build used for trigger evaluation.

    ``get_changelog`` and ``get_environment`` may raise ``OSError`` when the
    underlying data cannot be read.
    """
    result: Optional[BuildResult]
    causes: List[Cause]
    scm_branch: Optional[str]

    def get_changelog(self) -> List[ChangeLogEntry]:
        ...

    def get_environment(self) -> Dict[str, str]:
        ...


@dataclass
class Build:
    """A single execution of a job"""
    job_name: str
    number: int
    workspace: Path
    log_path: Path
    result: Optional[BuildResult] = None
    causes: List[Cause] = field(default_factory=list)
    changelog: List[ChangeLogEntry] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)
    scm_branch: Optional[str] = None
    actions: List[Any] = field(default_factory=list)

    def get_changelog(self) -> List[ChangeLogEntry]:
        return list(self.changelog)

    def get_environment(self) -> Dict[str, str]:
        return dict(self.environment)

    def open_log(self) -> TextIO:
        """Open the build log for a single forward read"""
        return open(self.log_path, "r", encoding="utf-8", errors="replace")

    def add_action(self, action: Any) -> None:
        self.actions.append(action)

    def get_action(self, action_type: Type[A]) -> Optional[A]:
        for action in self.actions:
            if isinstance(action, action_type):
                return action
        return None

    @property
    def display_name(self) -> str:
        return f"{self.job_name} #{self.number}"


@dataclass(frozen=True)
class SkipDecision:
    """Outcome of trigger evaluation: proceed, or skip with a reason"""
    reason: Optional[str] = None

    @property
    def skip(self) -> bool:
        return self.reason is not None

    @classmethod
    def proceed(cls) -> "SkipDecision":
        return cls()


@dataclass(frozen=True)
class SonarStepResult:
    """What the Sonar step did for one build"""
    success: bool
    decision: SkipDecision = field(default_factory=SkipDecision.proceed)
    url: Optional[str] = None
