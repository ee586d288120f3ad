# ballotbox/authentication/credentials.py

import hmac
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, HashingError, InvalidHashError

# Admin secrets are compared in plain text by default, which is how existing
# deployments store them. HASH_ADMIN_SECRETS=1 stores new secrets as Argon2id
# hashes instead; verification accepts either form.

ARGON2_PREFIX = '$argon2'


class CredentialService:
    def __init__(self, hash_secrets=False):
        self.hash_secrets = hash_secrets
        self.ph = PasswordHasher(
            time_cost=3,
            memory_cost=65536,
            parallelism=4,
            hash_len=32,
            salt_len=16,
        )

    def make_secret(self, password: str) -> str:
        if not isinstance(password, str) or not password:
            raise ValueError("Password must be a non-empty string")
        if not self.hash_secrets:
            return password
        try:
            return self.ph.hash(password)
        except HashingError as e:
            raise ValueError(f"Password hashing failed: {str(e)}")

    def is_hashed(self, stored: str) -> bool:
        return isinstance(stored, str) and stored.startswith(ARGON2_PREFIX)

    def verify(self, password: str, stored: str) -> bool:
        if not isinstance(password, str) or not isinstance(stored, str):
            return False
        if self.is_hashed(stored):
            try:
                return self.ph.verify(stored, password)
            except (VerificationError, InvalidHashError):
                return False
        return hmac.compare_digest(password.encode('utf-8'), stored.encode('utf-8'))
