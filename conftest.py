import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent

PYTHON_PATHS = [
    ROOT / "apps" / "chat-worker",
    ROOT / "packages",
    ROOT / "packages" / "protocol",
    ROOT / "packages" / "runtime",
    ROOT / "packages" / "workflows",
    ROOT / "packages" / "session_state",
]

for path in PYTHON_PATHS:
    sys.path.insert(0, str(path))
