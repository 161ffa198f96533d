"""
pagepilot.config.style – design/media settings.

Env vars: CDN_DOMAIN.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StyleStoreConfig:
    cdn_domain: Optional[str] = None
    """Host serving media-library objects; None leaves media URLs unresolved."""

    def __post_init__(self) -> None:
        if self.cdn_domain is not None and ("/" in self.cdn_domain or not self.cdn_domain.strip()):
            raise ValueError(f"cdn_domain must be a bare host name, got {self.cdn_domain!r}")

    @classmethod
    def from_env(cls) -> "StyleStoreConfig":
        raw = (os.environ.get("CDN_DOMAIN") or "").strip()
        return cls(cdn_domain=raw.removeprefix("https://").rstrip("/") or None)

    def media_url(self, s3_key: Optional[str]) -> Optional[str]:
        if not s3_key or not self.cdn_domain:
            return None
        return f"https://{self.cdn_domain}/{s3_key.lstrip('/')}"
