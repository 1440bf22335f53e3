import threading
import time
from functools import lru_cache
from pathlib import Path
from string import Template

_lock = threading.Lock()
_last_ns = 0


def monotonic_timestamp_ns() -> int:
    """Wall-clock nanoseconds, strictly increasing across calls in this process."""
    global _last_ns
    with _lock:
        now = time.time_ns()
        _last_ns = now if now > _last_ns else _last_ns + 1
        return _last_ns


def timestamp_id(prefix: str = "") -> str:
    """Unique, creation-order-sortable identifier."""
    value = str(monotonic_timestamp_ns())
    return f"{prefix}-{value}" if prefix else value


def now_ms() -> int:
    return time.time_ns() // 1_000_000


PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(name: str) -> Template:
    """Read a prompt template from ``stackideator/prompts``."""
    with open(PROMPTS_DIR / f"{name}.txt", 'r', encoding='utf-8') as prompt_file:
        return Template(prompt_file.read())
