"""
Sonar build step
Skip-trigger evaluation, Maven launch and dashboard URL extraction
"""

from .actions import BuildSonarAction, ProjectSonarAction, get_last_sonar_url, record_build_action
from .branch import escape_invalid_branch_characters
from .configuration import SonarConfig, load_sonar_config
from .installation import SonarInstallation
from .listener import BuildListener
from .log_extractor import extract_sonar_project_url_from_logs, extract_sonar_url
from .maven import SonarMaven
from .publisher import SonarPublisher
from .triggers import GlobalTriggers, LocalTriggers, TriggerEvaluator, TriggersConfig, evaluate, resolve_triggers
from .types import Build, BuildResult, Cause, CauseType, ChangeLogEntry, SkipDecision

__all__ = [
    'Build',
    'BuildListener',
    'BuildResult',
    'BuildSonarAction',
    'Cause',
    'CauseType',
    'ChangeLogEntry',
    'GlobalTriggers',
    'LocalTriggers',
    'ProjectSonarAction',
    'SkipDecision',
    'SonarConfig',
    'SonarInstallation',
    'SonarMaven',
    'SonarPublisher',
    'TriggerEvaluator',
    'TriggersConfig',
    'escape_invalid_branch_characters',
    'evaluate',
    'extract_sonar_project_url_from_logs',
    'extract_sonar_url',
    'get_last_sonar_url',
    'load_sonar_config',
    'record_build_action',
    'resolve_triggers'
]
