from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str

    # Tokens are minted by the wallet sign-in service with the same secret
    secret_key: str
    access_token_expire_minutes: int = 10080

    run_migrations_on_startup: bool = True
    log_level: str = "INFO"

    default_note_title: str = "Untitled"
    recent_notes_limit: int = 10
    rate_limit_writes: str = "60/minute"

    cors_origins: str = "http://localhost,http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
