"""
Generate the RSA-2048 keypair that signs and verifies access tokens (RS256).

Writes the PEM files at JWT_PRIVATE_KEY_PATH and JWT_PUBLIC_KEY_PATH
(keys/private.pem, keys/public.pem by default).  Without them the API
falls back to HS256 with SECRET_KEY.

Existing keys are kept unless --force is given.

Usage: python scripts/generate_keys.py [--force]
"""

import os
import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app.config import settings


def generate_keys(private_path: Path, public_path: Path, force: bool = False) -> bool:
    """Write a fresh PEM keypair; returns False when keys exist and *force* is off."""
    if not force and (private_path.exists() or public_path.exists()):
        print(f"Keys already present in {private_path.parent.resolve()}, use --force to replace them")
        return False

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_path.parent.mkdir(parents=True, exist_ok=True)
    private_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    private_path.chmod(0o600)

    public_path.parent.mkdir(parents=True, exist_ok=True)
    public_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )

    print("JWT signing keys written:")
    print(f"  private: {private_path.resolve()}")
    print(f"  public:  {public_path.resolve()}")
    return True


if __name__ == "__main__":
    os.chdir(Path(__file__).resolve().parent.parent)
    generate_keys(
        Path(settings.JWT_PRIVATE_KEY_PATH),
        Path(settings.JWT_PUBLIC_KEY_PATH),
        force="--force" in sys.argv[1:],
    )
