from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # .env.local is listed last so it wins over .env
    model_config = SettingsConfigDict(env_file=(".env", ".env.local"), env_ignore_empty=True, extra="ignore")

    source_dir: Path | None = None

    host: str = "127.0.0.1"
    port: int = 3001

    cors_origins_raw: str = "http://localhost:3000,http://localhost:5173"
    ngrok_url: str = ""

    diff_context_lines: int = 3
    git_timeout: int = 20  # seconds

    log_level: str = "INFO"

    @property
    def cors_origins(self) -> list[str]:
        origins = [x.strip() for x in (self.cors_origins_raw or "").split(",") if x.strip()]
        url = (self.ngrok_url or "").strip()
        if url:
            origins.append(url)
            if url.startswith("https://"):
                origins.append("http://" + url[len("https://"):])
        return origins

