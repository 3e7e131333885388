from pydantic_settings import BaseSettings, SettingsConfigDict

from runstate.constants import DEFAULT_ROOT, REPO_ROOT_DIR


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RUNSTATE_",
        env_file=(REPO_ROOT_DIR / ".env", ".env"),
        extra="ignore",
    )

    # Directory holding one sub-directory of persisted state per container
    ROOT: str = DEFAULT_ROOT
    FACTORY_BACKEND: str = "statedir"

    ENV: str = "local"
    JSON_LOGGING: bool = False
    LOG_LEVEL: str = "WARNING"


settings = Settings()
