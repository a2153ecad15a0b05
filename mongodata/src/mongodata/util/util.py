from datetime import datetime, timezone
from pathlib import Path
import sys

main_dir = Path(sys.argv[0]).resolve().parent


def get_path(path: str | Path) -> Path:
    return main_dir / path


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def uncapitalize(value: str) -> str:
    if not value:
        return value
    return value[0].lower() + value[1:]


def has_text(value: str | None) -> bool:
    return value is not None and value.strip() != ""
