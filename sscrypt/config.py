import os
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str):
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


KEY_BITS = int(os.getenv("SS_KEY_BITS", "256"))
MR_ITERS = int(os.getenv("SS_MR_ITERS", "50"))
PUB_FILE = os.getenv("SS_PUB_FILE", "ss.pub")
PRIV_FILE = os.getenv("SS_PRIV_FILE", "ss.priv")
KEYGEN_TIMEOUT = _optional_float("SS_KEYGEN_TIMEOUT")  # seconds, None = unbounded
LOG_LEVEL = os.getenv("SS_LOG_LEVEL", "WARNING").upper()
