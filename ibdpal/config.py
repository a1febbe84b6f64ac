# backend configuration
# loads env vars for mongodb, cors, and the assessment / adherence windows

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "ibdpal_db")
    MONGODB_TIMEOUT_MS: int = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # disease activity uses a 30-day recall window
    ASSESSMENT_WINDOW_DAYS: int = 30

    # default adherence range when the caller gives none
    ADHERENCE_LOOKBACK_DAYS: int = 90

    # sent as Retry-After when storage is temporarily unavailable
    STORAGE_RETRY_AFTER_SECONDS: int = 30

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
