import os
from pathlib import Path

from dotenv import load_dotenv

__version__ = "0.3.0"

# Load environment variables early so TRADELAB_* settings are visible on first import
load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")


def _detect_build_version() -> str:
    explicit = os.getenv("APP_VERSION")
    if explicit:
        return explicit
    build_file = Path(__file__).resolve().parents[1] / "_build_version.txt"
    if build_file.exists():
        try:
            return build_file.read_text(encoding="utf-8").strip()
        except OSError:
            pass
    return __version__


APP_VERSION = _detect_build_version()
