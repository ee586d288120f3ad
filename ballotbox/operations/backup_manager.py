# ballotbox/operations/backup_manager.py
# Snapshot backups of the election store, optionally encrypted with
# AES-256-GCM, each with a SHA-256 integrity file.

import os, time, json, hashlib, secrets, pathlib, logging
from typing import Dict, Optional
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.exceptions import InvalidTag

from ballotbox.audit.audit_logger import AuditAction
from ballotbox.database.models import isoformat, utcnow

logger = logging.getLogger(__name__)

NONCE_BYTES = 12


class BackupError(Exception):
    pass


def _sha256_file(path: str) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _load_key(key_hex: Optional[str]) -> Optional[bytes]:
    if not key_hex:
        return None
    if len(key_hex) != 64:
        raise ValueError("Backup key must be 64 hex chars (32 bytes)")
    return bytes.fromhex(key_hex)


def perform_backup(store, outdir: str, key_hex: Optional[str] = None) -> Dict:
    """
    Writes the store's full export as a timestamped JSON backup, encrypted
    when a key is given, plus a .sha256 integrity file and a .json manifest.
    Returns the manifest.
    """
    key = _load_key(key_hex)
    pathlib.Path(outdir).mkdir(parents=True, exist_ok=True)

    backup = {'timestamp': isoformat(utcnow()), 'data': store.export_voting_data()}
    plaintext = json.dumps(backup, indent=2).encode('utf-8')

    ts = time.strftime("%Y%m%d-%H%M%S")
    suffix = secrets.token_hex(3)
    if key:
        nonce = secrets.token_bytes(NONCE_BYTES)
        payload = nonce + AESGCM(key).encrypt(nonce, plaintext, None)  # nonce + ciphertext+tag
        name = f"election_backup-{ts}-{suffix}.json.aes"
    else:
        payload = plaintext
        name = f"election_backup-{ts}-{suffix}.json"

    path = os.path.join(outdir, name)
    with open(path, "wb") as f:
        f.write(payload)

    sha = _sha256_file(path)
    sha_path = path + ".sha256"
    with open(sha_path, "w") as f:
        f.write(f"{sha}  {os.path.basename(path)}\n")

    meta = {
        "backup_file": path,
        "sha256_file": sha_path,
        "sha256": sha,
        "encrypted": key is not None,
        "bytes": len(payload),
        "created_at": backup['timestamp'],
        "counts": {k: len(backup['data'][k]) for k in ('voters', 'candidates', 'votes', 'admins')},
    }
    with open(path + ".manifest.json", "w") as f:
        json.dump(meta, f, indent=2)

    store.add_audit_log(AuditAction.DATABASE_BACKUP, 'system', 'System',
                        f"Database backup created: {name}")
    logger.info(f"Backup created: {path}")
    return meta


def load_backup(path: str, key_hex: Optional[str] = None) -> Dict:
    """Verify, decrypt and parse a backup written by perform_backup."""
    sha_path = path + ".sha256"
    if os.path.exists(sha_path):
        with open(sha_path) as f:
            expected = f.read().split()[0]
        if _sha256_file(path) != expected:
            raise BackupError(f"Integrity check failed for {path}")

    with open(path, "rb") as f:
        payload = f.read()

    if path.endswith(".aes"):
        key = _load_key(key_hex)
        if key is None:
            raise BackupError("Encrypted backup requires a key")
        try:
            payload = AESGCM(key).decrypt(payload[:NONCE_BYTES], payload[NONCE_BYTES:], None)
        except InvalidTag as e:
            raise BackupError("Backup could not be decrypted") from e

    try:
        return json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BackupError(f"Backup is not valid JSON: {e}") from e
