"""
auth_flow.py - Login / Registration Orchestration

Runs the credential commitment engine for user-entered credentials, checks
the resulting proof, and records the outcome in the AuthStore:

  register        -> fresh salt, new user, token, cached credential
  login           -> known email: password checked against the cached hash
  biometric_login -> sensor match restores the cached user
"""

import hmac
import logging
import time
import uuid
from typing import Optional

import jwt as pyjwt

from client.auth_store import AuthStore
from client.biometric import BiometricSensor, biometric_icon
from client.config import MIN_PASSWORD_LENGTH, TOKEN_ALGORITHM, TOKEN_EXPIRY_SEC, TOKEN_SECRET_KEY
from common.errors import AuthFlowError, InvalidInputError
from common.models import StoredCredential, User, ZKProof
from common.utils import generate_id
from engine.zkp_engine import derive_password_hash, generate_proof, split_password_hash, verify_proof

logger = logging.getLogger(__name__)


class AuthService:

    def __init__(self, store: AuthStore, sensor: Optional[BiometricSensor] = None, *,
                 token_secret: Optional[str] = TOKEN_SECRET_KEY,
                 token_expiry: int = TOKEN_EXPIRY_SEC,
                 proof_factory=generate_proof):
        self.store = store
        self.sensor = sensor
        self._token_secret = token_secret
        self.token_expiry = token_expiry
        self._generate_proof = proof_factory

    # ──────────────────────────────────────────
    # TOKENS
    # ──────────────────────────────────────────
    @property
    def token_secret(self) -> str:
        if self._token_secret is None:
            self._token_secret = self.store.device_secret()
        return self._token_secret

    def issue_token(self, user: User, method: str = "password") -> str:
        now = int(time.time())
        payload = {
            "sub": user.id,
            "email": user.email,
            "publicHash": user.public_hash,
            "method": method,
            "iat": now,
            "exp": now + self.token_expiry,
            "jti": str(uuid.uuid4()),
        }
        return pyjwt.encode(payload, self.token_secret, algorithm=TOKEN_ALGORITHM)

    def verify_token(self, token: str) -> dict:
        try:
            return pyjwt.decode(token, self.token_secret, algorithms=[TOKEN_ALGORITHM])
        except pyjwt.ExpiredSignatureError as exc:
            raise AuthFlowError("Session token expired") from exc
        except pyjwt.InvalidTokenError as exc:
            raise AuthFlowError(f"Invalid session token: {exc}") from exc

    def restore_session(self) -> bool:
        """Initialize the store and drop a persisted token that no longer verifies."""
        self.store.initialize()
        if not self.store.token:
            return False
        try:
            self.verify_token(self.store.token)
        except AuthFlowError as exc:
            logger.warning(f"Discarding stored session: {exc}")
            self.store.clear_token()
            return False
        return True

    # ──────────────────────────────────────────
    # PROOF
    # ──────────────────────────────────────────
    def _derive(self, password: str, salt: Optional[str] = None) -> str:
        self.store.set_loading(True)
        try:
            return derive_password_hash(password, salt)
        finally:
            self.store.set_loading(False)

    def _prove(self, email: str, password: str, password_hash: str) -> ZKProof:
        self.store.set_loading(True)
        try:
            proof = self._generate_proof(email, password, password_hash)
        finally:
            self.store.set_loading(False)
        if not verify_proof(proof, email):
            raise AuthFlowError("Generated proof failed verification")
        return proof

    def _complete(self, email: str, proof: ZKProof, password_hash: str, method: str) -> User:
        cached = self.store.credential
        if cached and cached.email == email and cached.public_hash == proof.public_hash and cached.user_id:
            user_id = cached.user_id
        else:
            user_id = generate_id()
        user = User(id=user_id, email=email, public_hash=proof.public_hash)
        self.store.set_user(user)
        self.store.set_token(self.issue_token(user, method))
        self.store.remember_credential(StoredCredential(
            email=email,
            public_hash=proof.public_hash,
            password_hash=password_hash,
            user_id=user_id,
        ))
        return user

    # ──────────────────────────────────────────
    # FLOWS
    # ──────────────────────────────────────────
    def register(self, email: str, password: str, confirm_password: str) -> User:
        if password != confirm_password:
            raise InvalidInputError("Passwords do not match")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        logger.info(f"Registering '{email}'")
        password_hash = self._derive(password)
        proof = self._prove(email, password, password_hash)
        user = self._complete(email, proof, password_hash, "password")
        logger.info(f"Registration successful (public hash {proof.public_hash[:16]}…)")
        return user

    def login(self, email: str, password: str) -> User:
        """
        A known email is checked against its cached password hash (same salt,
        constant-time compare) and the hash is reused so the public hash stays
        stable. Unknown emails get a freshly salted hash.
        """
        cached = self.store.credential
        if cached and cached.email == email:
            salt, _ = split_password_hash(cached.password_hash)
            candidate = self._derive(password, salt)
            if not hmac.compare_digest(candidate, cached.password_hash):
                logger.warning(f"Login failed for '{email}': password mismatch")
                raise AuthFlowError("Invalid credentials")
            password_hash = cached.password_hash
        else:
            password_hash = self._derive(password)
        proof = self._prove(email, password, password_hash)
        user = self._complete(email, proof, password_hash, "password")
        logger.info(f"Login successful for '{email}'")
        return user

    def biometric_login(self, reason: str = "Login to your ZKP Auth account") -> bool:
        if not self.store.biometric_enabled:
            raise AuthFlowError("Biometric authentication is not enabled")
        cached = self.store.credential
        if cached is None:
            raise AuthFlowError("No stored credential for biometric login")
        if self.sensor is None or not self.sensor.authenticate(reason):
            return False

        user = User(id=cached.user_id or generate_id(), email=cached.email, public_hash=cached.public_hash)
        self.store.set_user(user)
        self.store.set_token(self.issue_token(user, "biometric"))
        logger.info(f"Biometric login successful for '{cached.email}'")
        return True

    def biometric_prompt_label(self) -> str:
        types = self.sensor.biometry_types() if self.sensor else []
        return f"{biometric_icon(types)} Enable Biometric Login?"

    def enable_biometric(self) -> bool:
        if self.sensor is None or not self.sensor.is_available():
            logger.warning("Biometric hardware not available")
            return False
        if not self.sensor.authenticate("Enable biometric authentication for this app"):
            return False
        self.store.set_biometric_enabled(True)
        return True

    def disable_biometric(self):
        self.store.set_biometric_enabled(False)

    def logout(self):
        self.store.logout()
