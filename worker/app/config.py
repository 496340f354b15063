# worker/app/config.py
from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve repo root: repo/ (since this file is repo/worker/app/config.py)
REPO_ENV = Path(__file__).resolve().parents[2] / ".env"


def github_raw_base(owner: str, repo: str, branch: str, images_dir: str) -> str:
    """Where GitHub serves files committed under images_dir."""
    return f"https://github.com/{owner}/{repo}/raw/{branch}/{images_dir.strip('/')}"


class Settings(BaseSettings):
    """
    Central config for the worker. Uses Pydantic v2 + pydantic-settings.

    - Loads env from the repo root .env if present
    - Ignores unknown env vars (prevents CI/local crashes)
    - Case-insensitive env keys
    - Sane defaults for local dev & tests (no live services required)
    """

    model_config = SettingsConfigDict(
        env_file=str(REPO_ENV),
        extra="ignore",
        case_sensitive=False,
    )

    # --- Artifact repository (GitHub contents API) ----------------------------
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: str = ""
    GITHUB_OWNER: str = "ganondorofu"
    GITHUB_REPO: str = "Img_save"
    GITHUB_BRANCH: str = "main"
    GITHUB_IMAGES_DIR: str = "static/images"
    # Public base for uploaded images; derived from owner/repo/branch when empty
    IMAGES_RAW_BASE: str = ""

    # --- Image naming ---------------------------------------------------------
    IMAGE_ID_LENGTH: int = 10
    DEFAULT_IMAGE_SUBTYPE: str = "png"

    # --- Article store --------------------------------------------------------
    ARTICLES_DIR: str = "data/articles"
    ARTICLE_ID_LENGTH: int = 10

    # --- Auth / HTTP ----------------------------------------------------------
    WORKER_AUTH_TOKEN: str = ""
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"
    HTTP_TIMEOUT_MS: int = 15000  # outbound calls (github)

    @property
    def images_raw_base(self) -> str:
        if self.IMAGES_RAW_BASE:
            return self.IMAGES_RAW_BASE.rstrip("/")
        return github_raw_base(
            self.GITHUB_OWNER, self.GITHUB_REPO, self.GITHUB_BRANCH, self.GITHUB_IMAGES_DIR
        )


# Singleton-style instance used by the app/tests
settings = Settings()
