"""
Environment-driven settings for the matching service
"""
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from collab_match.utils.exceptions import ConfigurationError

load_dotenv()


class MatchingSettings(BaseModel):
    """Runtime configuration read from the environment"""
    mongo_details: str = Field(default="mongodb://localhost:27017", description="MongoDB connection string")
    db_name: str = Field(default="collab_match_db", description="Database holding the marketplace collections")
    trigger_delay: float = Field(default=0.1, ge=0.0, le=60.0, description="Seconds to wait before a triggered batch run")
    opportunity_url_prefix: str = Field(
        default="#/collaboration-opportunities",
        description="Prefix for the notification action link"
    )

    @field_validator('db_name')
    @classmethod
    def validate_db_name(cls, v):
        if not v.strip():
            raise ValueError('DB_NAME must not be empty')
        return v


@lru_cache(maxsize=1)
def get_settings() -> MatchingSettings:
    """Build settings once from environment variables"""
    raw_delay = os.getenv("MATCH_TRIGGER_DELAY", "0.1")
    try:
        delay = float(raw_delay)
    except ValueError as e:
        raise ConfigurationError(
            "MATCH_TRIGGER_DELAY must be a number of seconds",
            config_key="MATCH_TRIGGER_DELAY",
            config_value=raw_delay,
            cause=e
        ) from e

    return MatchingSettings(
        mongo_details=os.getenv("MONGO_DETAILS", "mongodb://localhost:27017"),
        db_name=os.getenv("DB_NAME", "collab_match_db"),
        trigger_delay=delay,
        opportunity_url_prefix=os.getenv("OPPORTUNITY_URL_PREFIX", "#/collaboration-opportunities"),
    )
