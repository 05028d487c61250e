import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    mcq_batch_size: int = Field(default=int(os.getenv("MCQ_BATCH_SIZE", "50")), ge=1, validate_default=True)
    snapshot_dir: str | None = os.getenv("SNAPSHOT_DIR") or None
    branding_url: str | None = os.getenv("BRANDING_URL") or None
    premium_tag: str = os.getenv("PREMIUM_TAG", "ultra")
    log_level: str = os.getenv("LOG_LEVEL", "DEBUG")

settings = Settings()
