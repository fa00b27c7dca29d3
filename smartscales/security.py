import base64
import binascii
import json
import os
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from flask import current_app
from sqlalchemy.orm.attributes import set_committed_value

KEY_WRAP_AAD = b"smartscales:dek-wrap:v1"
BLOB_VERSION = 1
NONCE_SIZE = 12
MIN_BLOB_SIZE = 1 + NONCE_SIZE + 1

MEASUREMENT_SCOPE = "measurement"
MEASUREMENT_SEALED_FIELDS = ["note"]


class EncryptionConfigError(RuntimeError):
    pass


def parse_master_key(raw: str | bytes | None) -> bytes | None:
    """Accept a 32-byte key as raw bytes, hex, or (urlsafe) base64 text."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        return raw if len(raw) == 32 else None

    text = raw.strip()
    if not text:
        return None

    if len(text) == 64:
        try:
            return bytes.fromhex(text)
        except ValueError:
            pass

    padded = text + ("=" * (-len(text) % 4))
    for decoder in (base64.urlsafe_b64decode, base64.b64decode):
        try:
            candidate = decoder(padded)
        except (binascii.Error, ValueError):
            continue
        if len(candidate) == 32:
            return candidate
    return None


def validate_encryption_configuration(raw_key: str | bytes | None, required: bool) -> None:
    if required and parse_master_key(raw_key) is None:
        raise EncryptionConfigError(
            "ENCRYPTION_MASTER_KEY must be set to a 32-byte key (base64/urlsafe-base64/hex)."
        )


def _master_key() -> bytes | None:
    key = parse_master_key(current_app.config.get("ENCRYPTION_MASTER_KEY"))
    if key is None and current_app.config.get("ENCRYPTION_REQUIRED"):
        raise EncryptionConfigError("ENCRYPTION_MASTER_KEY is required but not configured.")
    return key


def _seal(key: bytes, plaintext: bytes, aad: bytes) -> bytes:
    nonce = os.urandom(NONCE_SIZE)
    return bytes([BLOB_VERSION]) + nonce + AESGCM(key).encrypt(nonce, plaintext, aad)


def _open(key: bytes, blob: bytes, aad: bytes) -> bytes:
    if len(blob) < MIN_BLOB_SIZE or blob[0] != BLOB_VERSION:
        raise EncryptionConfigError("Encrypted blob is malformed or uses an unsupported version.")
    nonce = blob[1 : 1 + NONCE_SIZE]
    return AESGCM(key).decrypt(nonce, blob[1 + NONCE_SIZE :], aad)


def user_data_key(user, *, create_if_missing: bool = True) -> bytes | None:
    master_key = _master_key()
    if master_key is None:
        return None

    if user.encrypted_dek:
        return _open(master_key, user.encrypted_dek, KEY_WRAP_AAD)
    if not create_if_missing:
        return None

    dek = AESGCM.generate_key(bit_length=256)
    user.encrypted_dek = _seal(master_key, dek, KEY_WRAP_AAD)
    return dek


def _scope_aad(scope: str, user_id: int) -> bytes:
    return f"smartscales:{scope}:uid:{user_id}:v1".encode("utf-8")


def seal_fields(*, user, record, fields: list[str], scope: str) -> None:
    """Move the non-empty ``fields`` of ``record`` into its ``encrypted_payload``."""
    payload: dict[str, Any] = {
        field: getattr(record, field)
        for field in fields
        if getattr(record, field, None) not in (None, "")
    }
    if not payload:
        record.encrypted_payload = None
        return

    dek = user_data_key(user, create_if_missing=True)
    if dek is None:
        record.encrypted_payload = None
        return

    plaintext = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    record.encrypted_payload = _seal(dek, plaintext, _scope_aad(scope, user.id))
    for field in fields:
        setattr(record, field, None)


def open_fields(*, user, record, fields: list[str], scope: str) -> None:
    """Restore sealed fields onto ``record`` without marking it dirty."""
    blob = record.encrypted_payload
    if not blob:
        return

    try:
        dek = user_data_key(user, create_if_missing=False)
        if dek is None:
            return
        payload = json.loads(_open(dek, blob, _scope_aad(scope, user.id)).decode("utf-8"))
    except (InvalidTag, EncryptionConfigError, ValueError):
        current_app.logger.warning("Failed to decrypt %s payload for user_id=%s", scope, user.id)
        return

    if not isinstance(payload, dict):
        return
    for field in fields:
        if field in payload:
            set_committed_value(record, field, payload[field])
