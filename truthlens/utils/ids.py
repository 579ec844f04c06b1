import secrets
import string
import time
from datetime import datetime, timezone

_BASE36 = string.digits + string.ascii_lowercase


def random_base36(length: int = 9) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def new_id(prefix: str) -> str:
    """`<prefix>_<epoch millis>_<9 base36 chars>`, e.g. analysis_1718000000000_k3j9x0q2a."""
    return f"{prefix}_{int(time.time() * 1000)}_{random_base36()}"


def new_analysis_id() -> str:
    return new_id("analysis")


def new_video_id() -> str:
    return new_id("video")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")
