import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # HTTP transport
    request_timeout: float = Field(default=30.0, alias="REFRESH_FETCH_TIMEOUT")
    follow_redirects: bool = Field(
        default=True, alias="REFRESH_FETCH_FOLLOW_REDIRECTS"
    )
    base_url: str | None = Field(default=None, alias="REFRESH_FETCH_BASE_URL")

    # JSON normalization
    default_content_type: str = Field(
        default="application/json", alias="REFRESH_FETCH_DEFAULT_CONTENT_TYPE"
    )

    # Debug logging of refresh gate transitions
    debug: bool = Field(default=False, alias="REFRESH_FETCH_DEBUG")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current process environment."""
        return cls(**os.environ)


global_settings = Settings.from_env()
