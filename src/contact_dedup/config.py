"""
Configuration management for the contact deduplication engine.

Loads settings from environment variables with sensible defaults. Threshold
defaults are the constants in ``pipeline.classifier``; the variables below
only override them.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name, '').strip()
    return float(raw) if raw else None


class Config:
    """Configuration settings loaded from environment."""

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_JSON: bool = os.getenv('LOG_JSON', 'false').lower() in ('1', 'true', 'yes')

    # Engine
    MAX_WORKERS: int = int(os.getenv('DEDUP_MAX_WORKERS', '1'))

    # Threshold overrides (None keeps the built-in constant)
    MIN_CONFIDENCE: float | None = _optional_float('DEDUP_MIN_CONFIDENCE')
    MERGE_FLOOR: float | None = _optional_float('DEDUP_MERGE_FLOOR')
    ORG_HIGH_SIMILARITY: float | None = _optional_float('DEDUP_ORG_HIGH_SIMILARITY')
    RELATED_NAME_CEILING: float | None = _optional_float('DEDUP_RELATED_NAME_CEILING')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate the loaded configuration.

        Returns:
            List of human-readable problems (empty when valid)
        """
        problems = []
        if cls.MAX_WORKERS < 1:
            problems.append('DEDUP_MAX_WORKERS must be >= 1')
        for key, value in (
            ('DEDUP_MIN_CONFIDENCE', cls.MIN_CONFIDENCE),
            ('DEDUP_MERGE_FLOOR', cls.MERGE_FLOOR),
        ):
            if value is not None and not 0 <= value <= 100:
                problems.append(f'{key} must be between 0 and 100')
        for key, value in (
            ('DEDUP_ORG_HIGH_SIMILARITY', cls.ORG_HIGH_SIMILARITY),
            ('DEDUP_RELATED_NAME_CEILING', cls.RELATED_NAME_CEILING),
        ):
            if value is not None and not 0 <= value <= 1:
                problems.append(f'{key} must be between 0 and 1')
        return problems


# Singleton config instance
config = Config()
