"""
Engine Configuration.

This module defines the global settings using Pydantic Settings.
It loads configuration variables from environment variables and/or a .env file,
ensuring typed and validated settings for the risk engine.

Attributes:
    settings: The global instance of the Settings class, ready to be imported and used.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
import os

DEFAULT_POLICY_FILE = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "services",
    "risk_assessment",
    "policy",
    "policies.yaml",
)


class Settings(BaseSettings):
    """
    Engine Settings.

    Attributes:
        PROJECT_NAME: The name of the project (default: "Change Risk Engine").
        LOG_LEVEL: Root log level passed to setup_logging.
        POLICY_FILE: YAML policy file read by YamlPolicyProvider when no path is given.
    """

    # Core
    PROJECT_NAME: str = "Change Risk Engine"
    LOG_LEVEL: str = "INFO"

    # Policies
    POLICY_FILE: str = DEFAULT_POLICY_FILE

    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )


settings = Settings()
