import logging
from functools import lru_cache

from pydantic import Field, PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This class defines all configuration values used by the reconciliation
    engine, including database connection details, LLM access for the
    achievement merge step, and the tunable matching constants.
    Values are loaded from environment variables with fallback defaults.

    Attributes:
        database_url (PostgresDsn): Database connection URL for PostgreSQL.
        db_echo (bool): Whether SQLAlchemy should echo emitted SQL.
        llm_api_key (str | None): API key for the LLM used to merge achievements.
        llm_endpoint (str | None): Custom OpenAI-compatible endpoint URL.
        llm_model_name (str | None): Model name; falls back to "gpt-4o" when unset.
        achievement_merge_temperature (float): Sampling temperature for the merge call.
        achievement_merge_max_attempts (int): How many times the merge call is tried
            before falling back to the unmerged list.
        company_name_max_distance (int): Largest edit distance between normalized
            company names that still counts as the same employer.
        skill_link_policy (str): How a skill seen in a second work context is handled.

    """

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # Database settings
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="career_profile", validation_alias="DB_NAME")
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: str = Field(default="", validation_alias="DB_PASSWORD")
    db_echo: bool = Field(default=False, validation_alias="DB_ECHO")

    @computed_field
    @property
    def database_url(self) -> PostgresDsn:
        """
        Assembled database URL from components.

        Args:
            None: This property does not take any arguments.

        Returns:
            PostgresDsn: The fully assembled PostgreSQL connection URL.

        Notes:
            1. Constructs the database URL using the components: scheme, username, password, host, port, and path.
            2. The scheme is set to "postgresql".
            3. The resulting URL is returned as a PostgresDsn object.

        """
        return PostgresDsn.build(
            scheme="postgresql",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            path=self.db_name,
        )

    # LLM settings
    llm_api_key: str | None = Field(default=None, validation_alias="LLM_API_KEY")
    llm_endpoint: str | None = Field(default=None, validation_alias="LLM_ENDPOINT")
    llm_model_name: str | None = Field(
        default=None,
        validation_alias="LLM_MODEL_NAME",
    )
    achievement_merge_temperature: float = Field(
        default=0.3,
        validation_alias="ACHIEVEMENT_MERGE_TEMPERATURE",
    )
    achievement_merge_max_attempts: int = Field(
        default=2,
        ge=1,
        validation_alias="ACHIEVEMENT_MERGE_MAX_ATTEMPTS",
    )

    # Reconciliation settings
    company_name_max_distance: int = Field(
        default=5,
        ge=0,
        validation_alias="COMPANY_NAME_MAX_DISTANCE",
    )
    skill_link_policy: str = Field(
        default="skip_if_linked",
        validation_alias="SKILL_LINK_POLICY",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the global settings instance.

    Args:
        None: This function does not take any arguments.

    Returns:
        Settings: The global settings instance, containing all configuration values.

    Raises:
        ValidationError: If environment variables are present but invalid.

    Notes:
        1. Reads configuration from environment variables using the .env file.
        2. If environment variables are not set, default values are used.
        3. The function returns a cached instance to avoid repeated parsing of the .env file.
        4. This function performs disk access to read the .env file on first call.

    """
    return Settings()
