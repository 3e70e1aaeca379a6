"""
Maven invocation of the Sonar goal
Builds the command line and streams Maven output into the build log
"""

import asyncio
import contextlib
import os
import shlex
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from core.config import settings
from .installation import SonarInstallation
from .listener import BuildListener
from .types import Build
from utils.logger import get_logger

if TYPE_CHECKING:
    from .publisher import SonarPublisher

logger = get_logger(__name__)

DEFAULT_POM = "pom.xml"
PASSWORD_MASK = "******"
SENSITIVE_PROPERTIES = ("-Dsonar.password=", "-Dsonar.jdbc.password=")
OUTPUT_LINE_LIMIT = 1024 * 1024


class SonarMaven:
    """Runs ``mvn sonar:sonar`` for one build"""

    def __init__(
        self,
        installation: SonarInstallation,
        publisher: "SonarPublisher",
        maven_home: Optional[str] = None,
        java_home: Optional[str] = None,
        maven_executable: Optional[str] = None,
        timeout_seconds: Optional[int] = None,
    ):
        self.installation = installation
        self.publisher = publisher
        self.maven_home = maven_home
        self.java_home = java_home
        self.maven_executable = maven_executable or settings.maven_executable
        self.timeout_seconds = timeout_seconds or settings.analysis_timeout_seconds

    def get_executable(self) -> str:
        if self.maven_home:
            return str(Path(self.maven_home) / "bin" / "mvn")
        return self.maven_executable

    def get_pom_name(self) -> str:
        return self.publisher.get_root_pom() or DEFAULT_POM

    def build_command(self, build: Build) -> List[str]:
        """Assemble the Maven command line for ``build``"""
        cmd = [self.get_executable(), "-f", self.get_pom_name(), "-e", "-B"]

        if self.publisher.settings_file:
            cmd.extend(["-s", self.publisher.settings_file])
        if self.publisher.global_settings_file:
            cmd.extend(["-gs", self.publisher.global_settings_file])
        if self.publisher.use_private_repository:
            cmd.append(f"-Dmaven.repo.local={Path(build.workspace) / '.repository'}")

        cmd.append(self.installation.sonar_goal)
        cmd.append(f"-Dsonar.host.url={self.installation.server_url}")
        if self.installation.login:
            cmd.append(f"-Dsonar.login={self.installation.login}")
        if self.installation.password:
            cmd.append(f"-Dsonar.password={self.installation.password}")

        branch = self.publisher.get_branch()
        if branch:
            cmd.append(f"-Dsonar.branch={branch}")
        language = self.publisher.get_language()
        if language:
            cmd.append(f"-Dsonar.language={language}")

        cmd.extend(shlex.split(self.installation.additional_properties or ""))
        cmd.extend(shlex.split(self.publisher.get_job_additional_properties()))
        return cmd

    def build_environment(self, build: Build) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(build.get_environment())
        if self.publisher.maven_opts:
            env["MAVEN_OPTS"] = self.publisher.maven_opts
        if self.java_home:
            env["JAVA_HOME"] = self.java_home
            env["PATH"] = os.pathsep.join([str(Path(self.java_home) / "bin"), env.get("PATH", "")])
        return env

    @staticmethod
    def mask_command(cmd: List[str]) -> str:
        masked = []
        for arg in cmd:
            for prefix in SENSITIVE_PROPERTIES:
                if arg.startswith(prefix):
                    arg = prefix + PASSWORD_MASK
                    break
            masked.append(shlex.quote(arg))
        return " ".join(masked)

    async def execute(self, build: Build, listener: BuildListener) -> bool:
        """
        Execute Maven and wait for it to finish

        Args:
            build: Build whose workspace is analysed
            listener: Receives every line Maven prints

        Returns:
            True when Maven exited with status 0

        Raises:
            OSError: Maven could not be started
            TimeoutError: Maven did not finish in time

        Maven is killed if it is still running when this returns or raises
        """
        cmd = self.build_command(build)
        listener.println(f"[sonar] $ {self.mask_command(cmd)}")
        logger.info(f"Starting Sonar analysis for {build.display_name}")

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=str(build.workspace),
            env=self.build_environment(build),
            limit=OUTPUT_LINE_LIMIT,
        )

        try:
            returncode = await asyncio.wait_for(
                self._stream_output(process, listener), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(f"Sonar analysis of {build.display_name} timed out after {self.timeout_seconds}s")
            raise
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        logger.info(f"Maven exited with status {returncode} for {build.display_name}")
        return returncode == 0

    async def _stream_output(self, process: asyncio.subprocess.Process, listener: BuildListener) -> int:
        while True:
            raw_line = await read_output_line(process.stdout)
            if not raw_line:
                break
            listener.println(raw_line.decode("utf-8", errors="replace").rstrip("\r\n"))
        return await process.wait()


async def read_output_line(stream: asyncio.StreamReader) -> bytes:
    """Read one line of any length; returns b"" at end of output"""
    chunks = []
    while True:
        try:
            chunks.append(await stream.readuntil(b"\n"))
            break
        except asyncio.IncompleteReadError as e:
            chunks.append(e.partial)
            break
        except asyncio.LimitOverrunError as e:
            # longer than the buffer limit: drain what is buffered and keep reading
            chunks.append(await stream.read(e.consumed))
    return b"".join(chunks)
