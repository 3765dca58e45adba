"""
biometric.py - Biometric Sensor Bindings

The real sensor lives in the platform layer. This module defines the
interface the auth flow talks to plus a simulated sensor for environments
without biometric hardware.
"""

import enum
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

logger = logging.getLogger(__name__)


class BiometryType(enum.Enum):
    FACE_ID = "faceId"
    TOUCH_ID = "touchId"
    FINGERPRINT = "fingerprintAuthentication"
    FACE = "faceAuthentication"
    IRIS = "irisAuthentication"


class BiometricSensor(ABC):
    """Interface implemented by platform bindings."""

    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    def biometry_types(self) -> List[BiometryType]:
        ...

    @abstractmethod
    def _prompt(self, reason: str) -> bool:
        ...

    def authenticate(self, reason: str = "Authenticate to access your account") -> bool:
        """
        Ask the user for a biometric match.
        Sensor errors are logged and reported as a refusal.
        """
        try:
            ok = bool(self._prompt(reason))
        except Exception as exc:
            logger.error(f"Biometric authentication failed: {exc}")
            return False
        if ok:
            logger.info("Biometric authentication successful")
        else:
            logger.info("Biometric authentication declined")
        return ok


class SimulatedBiometricSensor(BiometricSensor):
    """
    Deterministic stand-in for a hardware sensor.

    available : whether the device reports biometric hardware
    types     : biometry kinds the device advertises
    accept    : outcome of every authenticate() call
    """

    def __init__(self, available: bool = True, types: Iterable[BiometryType] = (BiometryType.FINGERPRINT,),
                 accept: bool = True):
        self.available = available
        self.types = list(types) if available else []
        self.accept = accept
        self.prompts: List[str] = []

    def is_available(self) -> bool:
        return self.available

    def biometry_types(self) -> List[BiometryType]:
        return list(self.types)

    def _prompt(self, reason: str) -> bool:
        self.prompts.append(reason)
        if not self.available:
            raise RuntimeError("No biometric hardware")
        return self.accept


def biometric_icon(types: Iterable[BiometryType]) -> str:
    types = list(types)
    if BiometryType.FACE_ID in types:
        return "👤"
    if BiometryType.TOUCH_ID in types or BiometryType.FINGERPRINT in types:
        return "👆"
    return "🔐"
