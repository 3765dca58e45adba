"""
config.py - Client Configuration
"""

import os

# ─────────────────────────────────────────────
# TOKEN CONFIG
# ─────────────────────────────────────────────
# Without ZKP_TOKEN_SECRET tokens are signed with a per-device secret kept
# in the preferences file.
TOKEN_SECRET_KEY = os.environ.get("ZKP_TOKEN_SECRET")
TOKEN_ALGORITHM  = "HS256"
TOKEN_EXPIRY_SEC = int(os.environ.get("ZKP_TOKEN_EXPIRY_SEC", 7 * 24 * 3600))

# ─────────────────────────────────────────────
# LOCAL STORAGE
# ─────────────────────────────────────────────
STORE_PATH = os.environ.get(
    "ZKP_STORE_PATH",
    os.path.join(os.path.dirname(__file__), "auth_storage.json"),
)

# ─────────────────────────────────────────────
# POLICY
# ─────────────────────────────────────────────
MIN_PASSWORD_LENGTH = 8

LOG_LEVEL = os.environ.get("ZKP_LOG_LEVEL", "INFO")
