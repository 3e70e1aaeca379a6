"""
Sonar build step
Decides whether to analyse a build, runs Maven and records the dashboard link
"""

import asyncio
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

from .actions import BuildSonarAction
from .branch import escape_invalid_branch_characters
from .installation import SonarInstallation, is_sonar_installation_valid
from .listener import BuildListener
from .log_extractor import extract_sonar_project_url_from_logs
from .maven import SonarMaven
from .triggers import GlobalTriggers, LocalTriggers, TriggerEvaluator, TriggersConfig, TriggerSource, resolve_triggers
from .types import Build, BuildResult, SkipDecision, SonarStepResult
from utils.logger import get_logger

if TYPE_CHECKING:
    from .configuration import SonarConfig

logger = get_logger(__name__)


class SonarPublisher(BaseModel):
    """Per-job settings of the Sonar build step"""
    installation_name: Optional[str] = None
    branch: Optional[str] = None
    escape_branch: bool = False
    language: Optional[str] = None
    # None means the installation triggers apply
    triggers: Optional[TriggersConfig] = None
    job_additional_properties: Optional[str] = None
    maven_opts: Optional[str] = None
    maven_installation_name: Optional[str] = None
    root_pom: Optional[str] = None
    jdk: Optional[str] = None
    settings_file: Optional[str] = None
    global_settings_file: Optional[str] = None
    use_private_repository: bool = False

    @property
    def trigger_source(self) -> TriggerSource:
        if self.triggers is None:
            return GlobalTriggers()
        return LocalTriggers(self.triggers)

    @property
    def use_global_triggers(self) -> bool:
        return isinstance(self.trigger_source, GlobalTriggers)

    def get_branch(self) -> Optional[str]:
        if self.branch and self.escape_branch:
            return escape_invalid_branch_characters(self.branch)
        return self.branch

    def get_language(self) -> str:
        return (self.language or "").strip()

    def get_job_additional_properties(self) -> str:
        return (self.job_additional_properties or "").strip()

    def get_root_pom(self) -> str:
        return (self.root_pom or "").strip()

    def check_skip(self, build: Build, installation: SonarInstallation,
                   evaluator: Optional[TriggerEvaluator] = None) -> SkipDecision:
        triggers = resolve_triggers(self.trigger_source, installation)
        return (evaluator or TriggerEvaluator()).evaluate(build, triggers)

    async def perform(self, build: Build, listener: BuildListener, config: "SonarConfig") -> bool:
        """Run the Sonar step; True when analysis succeeded or was skipped"""
        result = await self.run(build, listener, config)
        return result.success

    async def run(self, build: Build, listener: BuildListener, config: "SonarConfig") -> SonarStepResult:
        """
        Run the Sonar step for a build

        Args:
            build: The build to analyse; its result and actions are updated
            listener: Build log writer
            config: Installations, tool locations and jobs

        Returns:
            Outcome of the step, including the skip decision and dashboard URL
        """
        installation = config.get_installation(self.installation_name)
        if not is_sonar_installation_valid(installation, self.installation_name, listener):
            return SonarStepResult(success=False)

        decision = self.check_skip(build, installation)
        if decision.skip:
            listener.println(decision.reason)
            logger.info(f"{build.display_name}: {decision.reason}")
            return SonarStepResult(success=True, decision=decision)

        url = None
        sonar_success = await self.execute_sonar(build, listener, installation, config)
        if not sonar_success:
            # a failed analysis must fail the whole build
            build.result = BuildResult.FAILURE
            build.add_action(BuildSonarAction())
        else:
            url = extract_sonar_project_url_from_logs(build)
            build.add_action(BuildSonarAction(url))

        listener.println(f"Sonar analysis completed: {build.result}")
        return SonarStepResult(success=sonar_success, decision=decision, url=url)

    async def execute_sonar(self, build: Build, listener: BuildListener,
                            installation: SonarInstallation, config: "SonarConfig") -> bool:
        try:
            maven = SonarMaven(
                installation,
                self,
                maven_home=config.get_maven_home(self.maven_installation_name),
                java_home=config.get_java_home(self.jdk),
            )
            return await maven.execute(build, listener)
        except asyncio.TimeoutError:
            return False
        except OSError as e:
            listener.print_failure_message()
            listener.error(str(e))
            listener.fatal_error("command execution failed", e)
            logger.error(f"Sonar analysis of {build.display_name} could not run: {e}")
            return False
        except Exception as e:
            listener.print_failure_message()
            listener.fatal_error("command execution failed", e)
            logger.error(f"Sonar analysis of {build.display_name} failed: {e}")
            return False
