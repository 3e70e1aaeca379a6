"""
Sonar build step API routes
Trigger evaluation, log URL extraction and build step execution
"""

from pathlib import Path
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.config import settings
from core.database import db_manager, get_db_session
from core.sonar import (
    Build,
    BuildListener,
    BuildResult,
    Cause,
    CauseType,
    ChangeLogEntry,
    ProjectSonarAction,
    SonarConfig,
    TriggersConfig,
    escape_invalid_branch_characters,
    evaluate,
    extract_sonar_url,
    load_sonar_config,
    record_build_action,
)
from core.sonar.actions import get_build_record
from utils.logger import get_logger

router = APIRouter(tags=["sonar"])
logger = get_logger(__name__)

ResultName = Literal["SUCCESS", "UNSTABLE", "FAILURE", "NOT_BUILT", "ABORTED"]


class CauseModel(BaseModel):
    type: CauseType
    description: Optional[str] = None
    upstream_job: Optional[str] = None


class ChangeLogEntryModel(BaseModel):
    commit_id: str
    author: str
    message: str = ""


class BuildMetadata(BaseModel):
    """Build information posted by the CI host."""
    number: int = Field(default=1, ge=1)
    result: Optional[ResultName] = "SUCCESS"
    causes: List[CauseModel] = Field(default_factory=list)
    changelog: List[ChangeLogEntryModel] = Field(default_factory=list)
    environment: dict = Field(default_factory=dict)
    scm_branch: Optional[str] = None


class TriggerEvaluationRequest(BaseModel):
    build: BuildMetadata
    triggers: Optional[TriggersConfig] = None
    installation_name: Optional[str] = None


class SkipDecisionResponse(BaseModel):
    skip: bool
    reason: Optional[str]


class LogUrlRequest(BaseModel):
    lines: List[str]


class LogUrlResponse(BaseModel):
    url: Optional[str]


class BranchEscapeRequest(BaseModel):
    branch: str


class BranchEscapeResponse(BaseModel):
    branch: str
    escaped: str


class InstallationResponse(BaseModel):
    name: str
    server_url: str
    mojo_version: Optional[str]
    disabled: bool


class BuildRunRequest(BuildMetadata):
    workspace: Optional[str] = None
    log_lines: List[str] = Field(default_factory=list)


class BuildRunResponse(BaseModel):
    job_name: str
    number: int
    success: bool
    skipped: bool
    skip_reason: Optional[str]
    result: Optional[str]
    sonar_url: Optional[str]


class BuildRecordResponse(BaseModel):
    job_name: str
    number: int
    result: Optional[str]
    skipped: bool
    skip_reason: Optional[str]
    sonar_url: Optional[str]
    created_at: Optional[str]


class ProjectActionResponse(BaseModel):
    job_name: str
    display_name: str
    icon_file_name: str
    url: Optional[str]


def get_sonar_config() -> SonarConfig:
    """Dependency returning the current Sonar configuration."""
    try:
        return load_sonar_config()
    except ValueError as e:
        logger.error(f"Failed to load Sonar configuration: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def to_build(job_name: str, metadata: BuildMetadata, workspace: Optional[str] = None) -> Build:
    """Map posted metadata onto a build with its own log file."""
    build_dir = Path(settings.workspace_root) / job_name / "builds" / str(metadata.number)
    return Build(
        job_name=job_name,
        number=metadata.number,
        workspace=Path(workspace) if workspace else Path(settings.workspace_root) / job_name,
        log_path=build_dir / "log",
        result=BuildResult[metadata.result] if metadata.result else None,
        causes=[Cause(c.type, c.description, c.upstream_job) for c in metadata.causes],
        changelog=[ChangeLogEntry(e.commit_id, e.author, e.message) for e in metadata.changelog],
        environment={str(k): str(v) for k, v in metadata.environment.items()},
        scm_branch=metadata.scm_branch,
    )


@router.post("/sonar/triggers/evaluate", response_model=SkipDecisionResponse)
async def evaluate_triggers(request: TriggerEvaluationRequest, config: SonarConfig = Depends(get_sonar_config)):
    """Decide whether analysis of the posted build would be skipped."""
    triggers = request.triggers
    if triggers is None:
        installation = config.get_installation(request.installation_name)
        if installation is None:
            raise HTTPException(status_code=404, detail="Sonar installation not found")
        triggers = installation.triggers

    build = to_build("evaluate", request.build)
    decision = evaluate(build, triggers)
    return SkipDecisionResponse(skip=decision.skip, reason=decision.reason)


@router.post("/sonar/logs/url", response_model=LogUrlResponse)
async def extract_log_url(request: LogUrlRequest):
    """Find the dashboard URL in posted log lines."""
    return LogUrlResponse(url=extract_sonar_url(request.lines))


@router.post("/sonar/branches/escape", response_model=BranchEscapeResponse)
async def escape_branch(request: BranchEscapeRequest):
    return BranchEscapeResponse(branch=request.branch, escaped=escape_invalid_branch_characters(request.branch))


@router.get("/sonar/installations", response_model=List[InstallationResponse])
async def list_installations(config: SonarConfig = Depends(get_sonar_config)):
    """List configured Sonar installations without credentials."""
    return [
        InstallationResponse(
            name=installation.name,
            server_url=installation.server_url,
            mojo_version=installation.mojo_version,
            disabled=installation.disabled,
        )
        for installation in config.installations
    ]


@router.post("/sonar/jobs/{job_name}/builds", response_model=BuildRunResponse)
async def run_sonar_step(
    job_name: str,
    request: BuildRunRequest,
    config: SonarConfig = Depends(get_sonar_config),
):
    """Run the Sonar build step of a job for the posted build."""
    publisher = config.get_job(job_name)
    if publisher is None:
        raise HTTPException(status_code=404, detail=f"Job {job_name} has no Sonar build step")

    build = to_build(job_name, request, request.workspace)
    try:
        # a re-posted build starts from a fresh log
        if build.log_path.exists():
            build.log_path.unlink()

        failure = None
        with BuildListener(build) as listener:
            for line in request.log_lines:
                listener.println(line)
            try:
                outcome = await publisher.run(build, listener, config)
            except Exception as e:
                listener.fatal_error("command execution failed", e)
                build.result = BuildResult.FAILURE
                failure = e

        with db_manager.session_scope() as session:
            record_build_action(session, build, outcome.decision if failure is None else None)

        if failure is not None:
            logger.error(f"Sonar step for {build.display_name} failed: {failure}", exc_info=failure)
            raise HTTPException(status_code=500, detail=str(failure))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Sonar step for {build.display_name} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return BuildRunResponse(
        job_name=job_name,
        number=build.number,
        success=outcome.success,
        skipped=outcome.decision.skip,
        skip_reason=outcome.decision.reason,
        result=str(build.result) if build.result is not None else None,
        sonar_url=outcome.url,
    )


@router.get("/sonar/jobs/{job_name}/builds/{number}", response_model=BuildRecordResponse)
async def get_sonar_build(job_name: str, number: int, db_session=Depends(get_db_session)):
    record = get_build_record(db_session, job_name, number)
    if record is None:
        raise HTTPException(status_code=404, detail="Build not found")

    return BuildRecordResponse(
        job_name=record.job_name,
        number=record.build_number,
        result=record.result,
        skipped=record.skipped,
        skip_reason=record.skip_reason,
        sonar_url=record.sonar_url,
        created_at=record.created_at.isoformat() if record.created_at else None,
    )


@router.get("/sonar/jobs/{job_name}/last-url", response_model=ProjectActionResponse)
async def get_project_action(job_name: str, db_session=Depends(get_db_session)):
    """Link to the dashboard of the job's latest analysis."""
    action = ProjectSonarAction(job_name)
    return ProjectActionResponse(
        job_name=job_name,
        display_name=action.display_name,
        icon_file_name=action.icon_file_name,
        url=action.get_url_name(db_session),
    )
