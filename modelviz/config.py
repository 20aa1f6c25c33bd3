"""Centralised settings for modelviz.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (one level up from the package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_list(name: str, default: str = "") -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    relation_limit: int = field(
        default_factory=lambda: int(os.environ.get("MODELVIZ_RELATION_LIMIT", "5"))
    )
    excluded_models: list[str] = field(
        default_factory=lambda: _env_list("MODELVIZ_EXCLUDED_MODELS")
    )
    excluded_attributes: list[str] = field(
        default_factory=lambda: _env_list(
            "MODELVIZ_EXCLUDED_ATTRIBUTES", "_id,created_at,updated_at"
        )
    )

    # ------------------------------------------------------------------
    # Table view
    # ------------------------------------------------------------------
    records_per_page: int = field(
        default_factory=lambda: int(os.environ.get("MODELVIZ_RECORDS_PER_PAGE", "25"))
    )
    max_per_page: int = field(
        default_factory=lambda: int(os.environ.get("MODELVIZ_MAX_PER_PAGE", "100"))
    )
    max_table_columns: int = field(
        default_factory=lambda: int(os.environ.get("MODELVIZ_MAX_TABLE_COLUMNS", "30"))
    )

    # ------------------------------------------------------------------
    # Host application
    # ------------------------------------------------------------------
    models_module: Optional[str] = field(
        default_factory=lambda: os.environ.get("MODELVIZ_MODELS_MODULE") or None
    )
    declarative_base: str = field(
        default_factory=lambda: os.environ.get("MODELVIZ_DECLARATIVE_BASE", "Base")
    )
    database_url: str = field(
        default_factory=lambda: os.environ.get(
            "MODELVIZ_DATABASE_URL", "sqlite:///db.sqlite3"
        )
    )
    mongo_uri: str = field(
        default_factory=lambda: os.environ.get(
            "MODELVIZ_MONGO_URI", "mongodb://localhost:27017/modelviz"
        )
    )

    # ------------------------------------------------------------------
    # Assistant passthrough
    # ------------------------------------------------------------------
    llm_command: str = field(
        default_factory=lambda: os.environ.get("MODELVIZ_LLM_COMMAND", "llm")
    )
    llm_timeout: float = field(
        default_factory=lambda: float(os.environ.get("MODELVIZ_LLM_TIMEOUT", "120.0"))
    )

    def is_excluded_attribute(self, name: str) -> bool:
        """Return ``True`` if *name* should be stripped from serialized records.

        Entries match exactly; entries that start with ``_`` also match as a
        suffix, so the default ``_id`` hides ``author_id`` as well.
        """
        for entry in self.excluded_attributes:
            if name == entry:
                return True
            if entry.startswith("_") and name.endswith(entry):
                return True
        return False


# Module-level singleton, imported everywhere:
#   from modelviz.config import settings
settings = Settings()
