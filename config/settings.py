import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

class Settings:
    APP_ENV: str = os.getenv("APP_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/grc-risk.log")
    MOCK_MODE: bool = os.getenv("MOCK_MODE", "true").lower() == "true"
    GRC_API_URL: str = os.getenv("GRC_API_URL", "http://localhost:3000")
    GRC_API_TOKEN: str = os.getenv("GRC_API_TOKEN", "")
    ORGANIZATION_NAME: str = os.getenv("ORGANIZATION_NAME", "Unknown Organization")
    REPORT_OUTPUT_DIR: Path = Path(os.getenv("REPORT_OUTPUT_DIR", "./reports"))
    SEED_COUNT: int = int(os.getenv("SEED_COUNT", "50"))
    VERSION: str = "1.0.0"
    APP_NAME: str = "GRC Risk Core"

    @classmethod
    def validate(cls) -> list:
        warnings = []
        if cls.MOCK_MODE:
            warnings.append("MOCK MODE active — no real register API calls.")
        elif not cls.GRC_API_TOKEN:
            warnings.append("GRC_API_TOKEN not set — register API requests will be rejected.")
        return warnings

    @classmethod
    def is_api_configured(cls) -> bool:
        return bool(cls.GRC_API_TOKEN)

settings = Settings()
