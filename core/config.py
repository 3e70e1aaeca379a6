from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    allowed_origins: str = Field(default="http://localhost:3000")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Database Configuration
    database_url: str = Field(default="sqlite:///./sonar_builds.db")
    database_pool_size: int = Field(default=5)
    database_max_overflow: int = Field(default=10)

    # Sonar build step
    sonar_config_path: str = Field(default="sonar.yml")
    workspace_root: str = Field(default="./workspace")
    maven_executable: str = Field(default="mvn")

    # Performance Settings
    analysis_timeout_seconds: int = Field(default=3600)

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    def validate(self) -> None:
        errors = []
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")
        if self.analysis_timeout_seconds <= 0:
            errors.append("ANALYSIS_TIMEOUT_SECONDS must be positive")
        if not self.maven_executable:
            errors.append("MAVEN_EXECUTABLE is required")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


settings = Settings()
