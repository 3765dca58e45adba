"""
auth_store.py - Authentication State

Holds the session state of the app (user, token, biometric preference,
cached credential) and persists it to a JSON preferences file. One AuthStore
is created at start-up and passed to whoever needs it.

Persisted keys:
  auth_token         - session token
  biometric_enabled  - "true" / "false"
  auth_storage       - {"user": ..., "biometricEnabled": ...}
  credential         - cached email / public hash / password hash
  device_secret      - token signing key when none is configured
"""

import json
import logging
import os
import secrets
from typing import Optional

from common.models import StoredCredential, User
from common.utils import ensure_dir

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
BIOMETRIC_KEY = "biometric_enabled"
SNAPSHOT_KEY = "auth_storage"
CREDENTIAL_KEY = "credential"
DEVICE_SECRET_KEY = "device_secret"


class AuthStore:

    def __init__(self, path: str):
        self.path = path
        self.user: Optional[User] = None
        self.token: Optional[str] = None
        self.is_authenticated = False
        self.is_loading = False
        self.biometric_enabled = False
        self.credential: Optional[StoredCredential] = None

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # ──────────────────────────────────────────
    # PREFERENCES FILE
    # ──────────────────────────────────────────
    def _load(self) -> dict:
        if os.path.exists(self.path):
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        return {}

    def _save(self, prefs: dict):
        ensure_dir(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(prefs, f, indent=2)

    def _update(self, **changes):
        prefs = self._load()
        for key, value in changes.items():
            if value is None:
                prefs.pop(key, None)
            else:
                prefs[key] = value
        self._save(prefs)

    def _snapshot(self) -> dict:
        return {
            "user": self.user.to_dict() if self.user else None,
            "biometricEnabled": self.biometric_enabled,
        }

    # ──────────────────────────────────────────
    # LIFECYCLE
    # ──────────────────────────────────────────
    def initialize(self):
        """Restore state from the preferences file. Storage errors leave the store logged out."""
        try:
            prefs = self._load()
            snapshot = prefs.get(SNAPSHOT_KEY) or {}
            user = User.from_dict(snapshot["user"]) if snapshot.get("user") else None
            credential = None
            if prefs.get(CREDENTIAL_KEY):
                credential = StoredCredential.from_dict(prefs[CREDENTIAL_KEY])
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error(f"Failed to initialize auth: {exc!r}")
            return

        self.user = user
        self.credential = credential

        token = prefs.get(TOKEN_KEY)
        if token:
            self.token = token
            self.is_authenticated = True
            self.biometric_enabled = prefs.get(BIOMETRIC_KEY) == "true"
            logger.info("Auth initialized from storage")
        else:
            self.biometric_enabled = bool(snapshot.get("biometricEnabled", False))

    def close(self):
        """Drop in-memory state. Persisted preferences are left untouched."""
        self.user = None
        self.token = None
        self.is_authenticated = False
        self.is_loading = False
        self.biometric_enabled = False
        self.credential = None

    # ──────────────────────────────────────────
    # MUTATIONS
    # ──────────────────────────────────────────
    def set_user(self, user: User):
        self.user = user
        self.is_authenticated = True
        self._update(**{SNAPSHOT_KEY: self._snapshot()})
        logger.info(f"User set in store: {user.id}")

    def set_token(self, token: str):
        self.token = token
        self.is_authenticated = True
        self._update(**{TOKEN_KEY: token})
        logger.info("Token saved")

    def set_loading(self, loading: bool):
        self.is_loading = loading

    def set_biometric_enabled(self, enabled: bool):
        self.biometric_enabled = enabled
        self._update(**{
            BIOMETRIC_KEY: "true" if enabled else "false",
            SNAPSHOT_KEY: self._snapshot(),
        })
        logger.info(f"Biometric setting updated: {enabled}")

    def remember_credential(self, credential: StoredCredential):
        self.credential = credential
        self._update(**{CREDENTIAL_KEY: credential.to_dict()})

    def forget_credential(self):
        self.credential = None
        self._update(**{CREDENTIAL_KEY: None})

    def device_secret(self) -> str:
        prefs = self._load()
        secret = prefs.get(DEVICE_SECRET_KEY)
        if not secret:
            secret = secrets.token_hex(32)
            self._update(**{DEVICE_SECRET_KEY: secret})
        return secret

    def clear_token(self):
        self.token = None
        self.is_authenticated = False
        self._update(**{TOKEN_KEY: None})

    def logout(self):
        self._update(**{
            TOKEN_KEY: None,
            BIOMETRIC_KEY: None,
            CREDENTIAL_KEY: None,
            SNAPSHOT_KEY: {"user": None, "biometricEnabled": False},
        })
        self.close()
        logger.info("User logged out")
