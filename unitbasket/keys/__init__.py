# unitbasket/keys/__init__.py
"""
Persistent secp256k1 signing key for unit price attestations.
Key is generated once and stored in KEYS_DIR so consumers can pin it.
"""

import os
from pathlib import Path
from ecdsa import SigningKey, SECP256k1

from unitbasket import config

KEY_FILENAME = "oracle_secp256k1.key"


def load_or_create_key(keys_dir=None) -> SigningKey:
    """Load existing secp256k1 key or generate a new persistent one."""
    keys_dir = Path(config.KEYS_DIR if keys_dir is None else keys_dir)
    key_path = keys_dir / KEY_FILENAME
    if key_path.exists():
        sk_hex = key_path.read_text().strip()
        return SigningKey.from_string(bytes.fromhex(sk_hex), curve=SECP256k1)

    keys_dir.mkdir(parents=True, exist_ok=True)
    sk = SigningKey.generate(curve=SECP256k1)
    key_path.write_text(sk.to_string().hex())
    os.chmod(str(key_path), 0o600)
    return sk


def pubkey_hex(sk: SigningKey) -> str:
    return sk.get_verifying_key().to_string("compressed").hex()
