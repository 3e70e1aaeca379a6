"""
Build and project level links to Sonar dashboards.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from core.database.models import SonarBuildRecord
from .types import Build, SkipDecision
from utils.logger import get_logger

logger = get_logger(__name__)

SONAR_ICON = "/static/images/sonar.png"
SONAR_DISPLAY_NAME = "Sonar"


@dataclass(frozen=True)
class BuildSonarAction:
    """Link from a build to its Sonar dashboard; url is None when analysis failed"""
    url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return SONAR_DISPLAY_NAME

    @property
    def icon_file_name(self) -> str:
        return SONAR_ICON

    @property
    def url_name(self) -> Optional[str]:
        return self.url


@dataclass(frozen=True)
class ProjectSonarAction:
    """Link from a job to the dashboard of its most recent analysis"""
    job_name: str

    @property
    def display_name(self) -> str:
        return SONAR_DISPLAY_NAME

    @property
    def icon_file_name(self) -> str:
        return SONAR_ICON

    def get_url_name(self, session: Session) -> Optional[str]:
        return get_last_sonar_url(session, self.job_name)


def record_build_action(session: Session, build: Build, decision: Optional[SkipDecision] = None) -> SonarBuildRecord:
    """Persist the outcome of the Sonar step for ``build``, replacing any earlier record"""
    action = build.get_action(BuildSonarAction)
    record = (
        session.query(SonarBuildRecord)
        .filter(SonarBuildRecord.job_name == build.job_name, SonarBuildRecord.build_number == build.number)
        .one_or_none()
    )
    if record is None:
        record = SonarBuildRecord(job_name=build.job_name, build_number=build.number)
        session.add(record)

    record.result = str(build.result) if build.result is not None else None
    record.has_action = action is not None
    record.sonar_url = action.url if action is not None else None
    record.skipped = bool(decision and decision.skip)
    record.skip_reason = decision.reason if decision is not None else None
    session.flush()

    logger.info(f"Recorded Sonar result for {build.display_name}: {record.sonar_url}")
    return record


def get_build_record(session: Session, job_name: str, build_number: int) -> Optional[SonarBuildRecord]:
    return (
        session.query(SonarBuildRecord)
        .filter(SonarBuildRecord.job_name == job_name, SonarBuildRecord.build_number == build_number)
        .one_or_none()
    )


def get_last_sonar_url(session: Session, job_name: str) -> Optional[str]:
    """Walk the builds of a job, newest first, and return the URL of the first one with a Sonar action"""
    record = (
        session.query(SonarBuildRecord)
        .filter(SonarBuildRecord.job_name == job_name, SonarBuildRecord.has_action.is_(True))
        .order_by(SonarBuildRecord.build_number.desc())
        .first()
    )
    return record.sonar_url if record is not None else None
