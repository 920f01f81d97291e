"""
Configuration settings for SD-JWT issuance.
"""

import os
from typing import Mapping, Optional

from .disclosure import SUPPORTED_HASH_ALGORITHMS
from .issuer import DEFAULT_KEY_ID
from .templates import DEFAULT_ISSUER


class Settings:
    """Settings read from ``SDJWT_*`` environment variables."""

    def __init__(
        self,
        issuer_url: str = DEFAULT_ISSUER,
        key_id: str = DEFAULT_KEY_ID,
        hash_alg: str = "sha-256",
        signing_key_file: Optional[str] = None,
        log_level: str = "WARNING",
    ):
        if hash_alg not in SUPPORTED_HASH_ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {hash_alg}")
        self.issuer_url = issuer_url
        self.key_id = key_id
        self.hash_alg = hash_alg
        self.signing_key_file = signing_key_file
        self.log_level = log_level.upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            issuer_url=env.get("SDJWT_ISSUER_URL", DEFAULT_ISSUER),
            key_id=env.get("SDJWT_KEY_ID", DEFAULT_KEY_ID),
            hash_alg=env.get("SDJWT_HASH_ALG", "sha-256"),
            signing_key_file=env.get("SDJWT_SIGNING_KEY_FILE") or None,
            log_level=env.get("SDJWT_LOG_LEVEL", "WARNING"),
        )

    def __repr__(self) -> str:
        return f"Settings(issuer_url={self.issuer_url!r}, key_id={self.key_id!r}, hash_alg={self.hash_alg!r})"

