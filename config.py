from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Rental Application API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./rental_applications.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Base of the human-facing links (apply / landlord / tenant status pages)
    public_base_url: str = "http://localhost:3000"

    # Unknown slug on the public form: persist a placeholder agent instead of 404
    placeholder_agent_on_unknown_slug: bool = True

    upload_max_size_mb: int = 5
    upload_allowed_types: str = "image/jpeg,image/png,application/pdf"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql

    @property
    def allowed_upload_types(self) -> list[str]:
        return [t.strip() for t in self.upload_allowed_types.split(",") if t.strip()]


settings = Settings()
