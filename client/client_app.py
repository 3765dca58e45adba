"""
client_app.py - Client Application Interface
Orchestrates Registration, Login and session management.

Usage:
  python client_app.py register --email alice@example.com
  python client_app.py login    --email alice@example.com
  python client_app.py biometric on
  python client_app.py biometric-login
  python client_app.py prove    --email alice@example.com > proof.json
  python client_app.py verify   proof.json --email alice@example.com
  python client_app.py status
  python client_app.py logout
"""

import sys
import os
import json
import argparse
import getpass
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from client.auth_flow import AuthService
from client.auth_store import AuthStore
from client.biometric import SimulatedBiometricSensor
from client.config import LOG_LEVEL, STORE_PATH
from common.errors import AuthFlowError, CryptoOperationError, InvalidInputError
from common.models import ZKProof
from common.utils import mask_sensitive, pretty_json
from engine.zkp_engine import generate_proof, verify_proof

logger = logging.getLogger(__name__)


def _password(args, confirm: bool = False):
    if args.password is not None:
        return args.password, args.password
    password = getpass.getpass("Password: ")
    again = getpass.getpass("Confirm password: ") if confirm else password
    return password, again


def build_sensor(mode: str) -> SimulatedBiometricSensor:
    if mode == "absent":
        return SimulatedBiometricSensor(available=False)
    return SimulatedBiometricSensor(available=True, accept=(mode == "accept"))


# ──────────────────────────────────────────────
# COMMANDS
# ──────────────────────────────────────────────
def cmd_register(service: AuthService, args) -> int:
    password, confirm = _password(args, confirm=True)
    user = service.register(args.email, password, confirm)
    logger.info("=" * 55)
    logger.info(f"✔ Registered '{user.email}'  id={user.id}")
    logger.info(f"✔ Public hash: {user.public_hash}")
    if service.sensor and service.sensor.is_available() and not service.store.biometric_enabled:
        logger.info(f"{service.biometric_prompt_label()}  (run: client_app.py biometric on)")
    logger.info("=" * 55)
    return 0


def cmd_login(service: AuthService, args) -> int:
    password, _ = _password(args)
    user = service.login(args.email, password)
    logger.info(f"✔ Logged in as '{user.email}'  id={user.id}")
    return 0


def cmd_biometric_login(service: AuthService, args) -> int:
    if not service.biometric_login():
        logger.warning("Biometric login declined")
        return 1
    logger.info(f"✔ Logged in as '{service.store.user.email}' (biometric)")
    return 0


def cmd_biometric(service: AuthService, args) -> int:
    if args.state == "on":
        if not service.enable_biometric():
            logger.warning("Biometric authentication was not enabled")
            return 1
        logger.info("✔ Biometric authentication enabled")
    else:
        service.disable_biometric()
        logger.info("✔ Biometric authentication disabled")
    return 0


def cmd_prove(service: AuthService, args) -> int:
    password, _ = _password(args)
    proof = generate_proof(args.email, password)
    print(pretty_json(proof.to_dict()))
    return 0


def cmd_verify(service: AuthService, args) -> int:
    try:
        with open(args.file, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.error(f"Cannot read proof file '{args.file}': {exc}")
        return 2
    try:
        proof = ZKProof.from_dict(data)
    except (KeyError, TypeError):
        logger.warning("Proof file is missing proof / publicHash / commitment")
        print(pretty_json({"valid": False}))
        return 1
    valid = verify_proof(proof, args.email)
    print(pretty_json({"valid": valid}))
    return 0 if valid else 1


def cmd_status(service: AuthService, args) -> int:
    store = service.store
    status = {
        "authenticated": store.is_authenticated,
        "user": store.user.to_dict() if store.user else None,
        "biometric_enabled": store.biometric_enabled,
        "token": store.token,
    }
    print(pretty_json(mask_sensitive(status)))
    return 0


def cmd_logout(service: AuthService, args) -> int:
    service.logout()
    logger.info("✔ Logged out")
    return 0


COMMANDS = {
    "register": cmd_register,
    "login": cmd_login,
    "biometric-login": cmd_biometric_login,
    "biometric": cmd_biometric,
    "prove": cmd_prove,
    "verify": cmd_verify,
    "status": cmd_status,
    "logout": cmd_logout,
}


# ──────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ZKP Auth Client")
    parser.add_argument("--store", default=STORE_PATH, help="Preferences file")
    parser.add_argument("--sensor", choices=("accept", "deny", "absent"), default="accept",
                        help="Simulated biometric sensor behaviour")
    sub = parser.add_subparsers(dest="cmd")

    for name, help_text in (("register", "Create an account"), ("login", "Sign in"),
                            ("prove", "Print a fresh proof as JSON")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--email", required=True)
        p.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("biometric-login", help="Sign in with biometrics")

    p_bio = sub.add_parser("biometric", help="Enable or disable biometric login")
    p_bio.add_argument("state", choices=("on", "off"))

    p_verify = sub.add_parser("verify", help="Structurally verify a proof JSON file")
    p_verify.add_argument("file")
    p_verify.add_argument("--email", default="")

    sub.add_parser("status", help="Show session state")
    sub.add_parser("logout", help="Sign out and clear stored credentials")
    return parser


def main(argv=None) -> int:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.cmd is None:
        parser.print_help()
        return 2

    store = AuthStore(args.store)
    service = AuthService(store, build_sensor(args.sensor))
    service.restore_session()
    try:
        return COMMANDS[args.cmd](service, args)
    except InvalidInputError as exc:
        logger.error(f"Invalid input: {exc}")
        return 2
    except (AuthFlowError, CryptoOperationError) as exc:
        logger.error(f"{args.cmd} failed: {exc}")
        return 1
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
