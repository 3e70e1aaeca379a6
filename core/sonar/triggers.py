"""
Skip rules deciding whether a build gets a Sonar analysis.
"""
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Callable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .types import BuildContext, BuildResult, CauseType, SkipDecision

if TYPE_CHECKING:
    from .installation import SonarInstallation

SKIPPING_SONAR_ANALYSIS = "Skipping Sonar analysis"


class TriggersConfig(BaseModel):
    """Skip rules of a job or of an installation"""
    model_config = ConfigDict(frozen=True)

    skip_scm_cause: bool = False
    skip_upstream_cause: bool = False
    skip_if_no_changes: bool = False
    env_var: Optional[str] = None
    branches: List[str] = Field(default_factory=list)


@dataclass(frozen=True)
class LocalTriggers:
    """Job-level triggers override the installation defaults"""
    config: TriggersConfig


@dataclass(frozen=True)
class GlobalTriggers:
    """Use the triggers configured on the Sonar installation"""


TriggerSource = Union[LocalTriggers, GlobalTriggers]


def resolve_triggers(source: TriggerSource, installation: "SonarInstallation") -> TriggersConfig:
    if isinstance(source, LocalTriggers):
        return source.config
    return installation.triggers


Rule = Callable[[BuildContext, TriggersConfig], Optional[str]]


def _bad_build_status(build: BuildContext, config: TriggersConfig) -> Optional[str]:
    # UNSTABLE only means failed tests, which does not prevent analysis
    if build.result is not None and build.result.is_worse_than(BuildResult.UNSTABLE):
        return f"{SKIPPING_SONAR_ANALYSIS} due to bad build status {build.result}"
    return None


def _skip_env_var(build: BuildContext, config: TriggersConfig) -> Optional[str]:
    if not config.env_var:
        return None
    value = build.get_environment().get(config.env_var)
    if value is not None and value.lower() == "true":
        return f"{SKIPPING_SONAR_ANALYSIS}: {config.env_var} is set to {value}"
    return None


def _no_scm_changes(build: BuildContext, config: TriggersConfig) -> Optional[str]:
    if not config.skip_if_no_changes:
        return None
    if not build.get_changelog():
        return f"{SKIPPING_SONAR_ANALYSIS}: no SCM changes"
    return None


def _branch_filter(build: BuildContext, config: TriggersConfig) -> Optional[str]:
    if not config.branches:
        return None
    branch = build.scm_branch
    if branch is not None and any(fnmatchcase(branch, pattern) for pattern in config.branches):
        return None
    return (
        f"{SKIPPING_SONAR_ANALYSIS}: branch {branch or '<unknown>'} "
        f"does not match {', '.join(config.branches)}"
    )


def _blacklisted_causes(build: BuildContext, config: TriggersConfig) -> Optional[str]:
    if not (config.skip_scm_cause or config.skip_upstream_cause):
        return None

    remaining = []
    for cause in build.causes:
        if cause.type is CauseType.SONAR:
            return None
        if config.skip_scm_cause and cause.type is CauseType.SCM:
            continue
        if config.skip_upstream_cause and cause.type is CauseType.UPSTREAM:
            continue
        remaining.append(cause)

    if not remaining:
        skipped = [cause.type.value for cause in build.causes]
        return f"{SKIPPING_SONAR_ANALYSIS}: triggered only by {', '.join(skipped) or 'nothing'}"
    return None


DEFAULT_RULES: List[Rule] = [
    _bad_build_status,
    _skip_env_var,
    _no_scm_changes,
    _branch_filter,
    _blacklisted_causes,
]


class TriggerEvaluator:
    """Applies skip rules in a fixed order; the first matching rule wins"""

    def __init__(self, rules: Optional[List[Rule]] = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def evaluate(self, build: BuildContext, config: TriggersConfig) -> SkipDecision:
        for rule in self.rules:
            reason = rule(build, config)
            if reason is not None:
                return SkipDecision(reason)
        return SkipDecision.proceed()


def evaluate(build: BuildContext, config: TriggersConfig) -> SkipDecision:
    """Decide whether analysis of ``build`` should be skipped under ``config``."""
    return TriggerEvaluator().evaluate(build, config)
