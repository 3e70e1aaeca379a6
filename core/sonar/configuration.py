"""
Loading of the Sonar configuration file.
"""
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from core.config import settings
from .installation import SonarInstallation
from .publisher import SonarPublisher
from utils.logger import get_logger

logger = get_logger(__name__)


class SonarConfig(BaseModel):
    """Global installations, tool locations and per-job build step settings"""
    installations: List[SonarInstallation] = Field(default_factory=list)
    maven_installations: Dict[str, str] = Field(default_factory=dict)
    jdks: Dict[str, str] = Field(default_factory=dict)
    jobs: Dict[str, SonarPublisher] = Field(default_factory=dict)

    def get_installation(self, name: Optional[str]) -> Optional[SonarInstallation]:
        """Find an installation by name; an unnamed lookup resolves only when exactly one exists"""
        if not name:
            return self.installations[0] if len(self.installations) == 1 else None
        for installation in self.installations:
            if installation.name == name:
                return installation
        return None

    def get_job(self, job_name: str) -> Optional[SonarPublisher]:
        return self.jobs.get(job_name)

    def get_maven_home(self, name: Optional[str]) -> Optional[str]:
        return self.maven_installations.get(name) if name else None

    def get_java_home(self, name: Optional[str]) -> Optional[str]:
        return self.jdks.get(name) if name else None


def load_sonar_config(path: Union[str, Path, None] = None) -> SonarConfig:
    """
    Read the Sonar configuration from YAML

    Args:
        path: Configuration file; defaults to ``settings.sonar_config_path``

    Returns:
        The parsed configuration, empty when the file does not exist

    Raises:
        ValueError: The file is not valid YAML or does not describe a configuration
    """
    config_path = Path(path or settings.sonar_config_path)
    if not config_path.exists():
        logger.warning(f"Sonar configuration {config_path} not found, no installations available")
        return SonarConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping at the top level")

    try:
        config = SonarConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid Sonar configuration in {config_path}: {e}") from e

    logger.info(
        f"Loaded {len(config.installations)} Sonar installation(s) and {len(config.jobs)} job(s) from {config_path}"
    )
    return config
