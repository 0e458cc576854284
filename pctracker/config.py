from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PC Tracker"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 8000

    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""

    oauth_provider: str = "google"

    # Public origin of the frontend, allowed by CORS
    site_url: str = "http://localhost:8000"

    session_cookie_name: str = "pctracker-access-token"
    verifier_cookie_name: str = "pctracker-code-verifier"

    http_timeout: float = 30.0

    # Restore the previous status when a remote write fails.
    # Default: False (optimistic state is kept, remote may diverge until reload)
    rollback_on_write_failure: bool = False

    # Persist status changes with a single conflict-resolving upsert instead
    # of update-then-insert.
    # Default: False (update first, insert when no row was updated)
    use_native_upsert: bool = False


settings = Settings()


# =============================================================================
# ROUTES
# =============================================================================

BOARD_PATH = "/board"
LOGIN_PATH = "/login"
CALLBACK_PATH = "/auth/callback"
