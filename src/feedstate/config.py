from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FEEDSTATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    DATA_DIR: Path = Field(Path("data"), description="Directory holding the database and backups")
    DB_NAME: str = Field("feeds.db", description="SQLite database file name inside DATA_DIR")
    BACKUP_FILE: str = Field(
        "feeds-backup.json",
        description="Default export/import file name inside DATA_DIR"
    )
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    VALIDATE_FIRST_ROW_ONLY: bool = Field(
        False,
        description="Only check the first row of each table before an import replaces data"
    )

    @property
    def db_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_NAME}"

    @property
    def backup_path(self) -> Path:
        return self.DATA_DIR / self.BACKUP_FILE

# Singleton instance
settings = Settings()
