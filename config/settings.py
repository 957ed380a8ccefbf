"""Configuration settings for the research directory.

Handles data locations, the export database path and query defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

# Project root directory
ROOT_DIR = Path(__file__).parent.parent


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Where the static JSON documents live: a directory or an http(s) base URL
    data_dir: str = os.getenv("DATA_DIR", str(ROOT_DIR / "data"))

    # Database used by the export script
    database_path: Path = ROOT_DIR / os.getenv("DATABASE_PATH", "data/database.sqlite")

    # Document names
    experts_file: str = "experts.json"
    expert_details_file: str = "expert_details.json"
    similar_profiles_file: str = "expert_similar_profiles.json"
    opportunities_file: str = "Opportunities.json"
    opportunity_details_file: str = "Opportunities_details.json"
    agencies_file: str = "agencies.json"

    # Query settings
    page_size: int = int(os.getenv("PAGE_SIZE", "24"))
    current_year: int = int(os.getenv("CURRENT_YEAR", "2026"))
    request_timeout: int = int(os.getenv("REQUEST_TIMEOUT", "30"))

    class Config:
        arbitrary_types_allowed = True


settings = Settings()
