"""
Mavericks Platform Configuration
Environment driven settings, validated at startup
"""

import os
from typing import List

# Languages offered for daily missions
PROGRAMMING_LANGUAGES = [
    "JavaScript", "Python", "Java", "C#", "TypeScript", "C++", "PHP", "Go",
    "Ruby", "Swift", "Kotlin", "Rust", "SQL"
]

# Gamification
XP_PER_LEVEL = 1000
XP_VALUES = {
    "CONCEPT_SOLVE": 100,
    "ASSESSMENT_PASSED": 250,
    "DAILY_MISSION": 150,
    "CHALLENGE_PARTICIPATION": 200,
}

# Rate-limited Gemini keys sit out this long before being retried
GEMINI_KEY_COOLDOWN_SECONDS = 60

ENRICHMENT_MODES = ("background", "blocking")


class Config:
    """Validated configuration - fails fast on missing vars"""

    def __init__(self):
        self.MONGO_URL = self._require_env("MONGO_URL")
        self.MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "mavericks_db")

        self.GEMINI_API_KEYS = self._parse_list(self._require_env("GEMINI_API_KEYS"))
        self.GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

        self.FIREBASE_PROJECT_ID = self._require_env("FIREBASE_PROJECT_ID")
        self.FIREBASE_CLIENT_EMAIL = self._require_env("FIREBASE_CLIENT_EMAIL")
        self.FIREBASE_PRIVATE_KEY = self._require_env("FIREBASE_PRIVATE_KEY").replace('\\n', '\n')

        self.MISSION_TIMEZONE = os.getenv("MISSION_TIMEZONE", "Asia/Kolkata")
        self.MISSION_ENRICHMENT = os.getenv("MISSION_ENRICHMENT", "background").lower()
        if self.MISSION_ENRICHMENT not in ENRICHMENT_MODES:
            raise RuntimeError(
                f"FATAL: MISSION_ENRICHMENT must be one of {ENRICHMENT_MODES}, got {self.MISSION_ENRICHMENT!r}"
            )

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def _require_env(key: str) -> str:
        """Get required environment variable or crash"""
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"FATAL: Missing required environment variable: {key}")
        return value

    @staticmethod
    def _parse_list(raw: str) -> List[str]:
        """Parse a comma-separated list, dropping blanks"""
        items = [item.strip() for item in raw.split(',') if item.strip()]
        if not items:
            raise RuntimeError("FATAL: GEMINI_API_KEYS must contain at least one key")
        return items
