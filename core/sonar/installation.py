"""
Sonar server installations shared by all jobs.
"""
from typing import Optional

from pydantic import BaseModel, Field

from .listener import BuildListener
from .triggers import TriggersConfig

DEFAULT_SERVER_URL = "http://localhost:9000"


class SonarInstallation(BaseModel):
    """A named Sonar server and its default analysis settings"""
    name: str
    server_url: str = Field(default=DEFAULT_SERVER_URL)
    login: Optional[str] = None
    password: Optional[str] = None
    mojo_version: Optional[str] = None
    additional_properties: str = ""
    disabled: bool = False
    triggers: TriggersConfig = Field(default_factory=TriggersConfig)

    @property
    def sonar_goal(self) -> str:
        if self.mojo_version:
            return f"org.codehaus.mojo:sonar-maven-plugin:{self.mojo_version}:sonar"
        return "sonar:sonar"


def is_sonar_installation_valid(
    installation: Optional[SonarInstallation],
    installation_name: Optional[str],
    listener: BuildListener,
) -> bool:
    """Report an unusable installation to the build log"""
    if installation is None:
        listener.error(
            f"Sonar installation '{installation_name or ''}' not found. "
            "Check the installations of the Sonar configuration."
        )
        return False
    if installation.disabled:
        listener.println(f"Skipping Sonar analysis: installation {installation.name} is disabled")
        return False
    return True
