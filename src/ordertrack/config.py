"""Configuration for ordertrack.

Module constants can be overridden via ORDERTRACK_* environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Local data directory within the ordertrack project
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("ORDERTRACK_DATA_DIR", _default_data_dir))
ORDERS_FILE = "orders.json"
UPLOADS_DIR = "uploads"
INVOICES_DIR = "invoices"

MAX_QUERY_LIMIT = 100
DEFAULT_QUERY_LIMIT = 10
NOTIFICATION_CAPACITY = 100
EXPORT_LIMIT = 1000
MAX_INVOICE_BYTES = 10 * 1024 * 1024
INVOICE_CONTENT_TYPES = {"application/pdf"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    data_dir: Path
    upload_dir: Path
    store_backend: str = "memory"  # "memory" or "json"
    strict_invoices: bool = False
    seed_sample_data: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, data_dir: Path | None = None) -> "Settings":
        """
        Build settings from ORDERTRACK_* environment variables.

        Args:
            data_dir: Override data directory (for testing).
        """
        base = data_dir or Path(os.environ.get("ORDERTRACK_DATA_DIR", DATA_DIR))
        upload_dir = Path(os.environ.get("ORDERTRACK_UPLOAD_DIR", base / UPLOADS_DIR))
        return cls(
            data_dir=base,
            upload_dir=upload_dir,
            store_backend=os.environ.get("ORDERTRACK_STORE", "memory").strip().lower(),
            strict_invoices=_env_flag("ORDERTRACK_STRICT_INVOICES"),
            seed_sample_data=_env_flag("ORDERTRACK_SEED_SAMPLE_DATA"),
            log_level=os.environ.get("ORDERTRACK_LOG_LEVEL", "WARNING").upper(),
        )
