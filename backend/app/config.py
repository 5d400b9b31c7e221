"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    demo_request_count: int = Field(default=6, ge=0, alias="DEMO_REQUEST_COUNT")
    demo_seed: int | None = Field(default=None, alias="DEMO_SEED")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    seed = os.getenv("DEMO_SEED")
    return Settings(
        demo_request_count=int(os.getenv("DEMO_REQUEST_COUNT", Settings.model_fields["demo_request_count"].default)),
        demo_seed=int(seed) if seed else None,
    )
