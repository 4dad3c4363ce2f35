"""Runtime configuration helpers.

This module centralizes environment-driven runtime switches so the rest of the
codebase can import a single cached Settings instance.

Env vars (optional) and their roles:
        VERIFICATION_API_URL -> Base URL of the external document/OCR verification service.
        BACKEND_URL          -> Base URL of the tenant backend that persists reviewed OCR data.
        REQUEST_TIMEOUT      -> Seconds allowed for each upstream HTTP call.
        MAX_FILE_MB          -> Upper bound for accepted capture uploads (reject larger uploads early).
        JPEG_QUALITY         -> Quality (1..95) used when re-encoding captured images.
        CONVERT_SIZE_BYTES   -> PNG captures larger than this are converted to JPEG.
        DEBUG_EXTRACTION     -> Verbose logging of field mapping decisions.
        LOG_LEVEL            -> Root log level applied at startup.
        CORS_ORIGINS         -> Comma separated list of allowed origins ("*" for any).
"""

import os
from functools import lru_cache
from typing import List
from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "True"}


class Settings:
        """Central runtime switches.

        Design notes:
        - Simple class instead of pydantic BaseSettings to minimize dependencies.
        - Values read when the instance is built and memoized via get_settings().
        """

        def __init__(self):
                # ---- Upstream services ----
                self.VERIFICATION_API_URL: str = os.getenv("VERIFICATION_API_URL", "http://localhost:8001").rstrip("/")
                self.BACKEND_URL: str = os.getenv("BACKEND_URL", "http://localhost:3000").rstrip("/")
                self.REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

                # ---- Resource & size guards ----
                self.MAX_FILE_MB: int = int(os.getenv("MAX_FILE_MB", "10"))
                self.JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "80"))
                self.CONVERT_SIZE_BYTES: int = int(os.getenv("CONVERT_SIZE_BYTES", "500000"))

                # ---- Diagnostics ----
                self.DEBUG_EXTRACTION: bool = os.getenv("DEBUG_EXTRACTION", "0") in _TRUTHY
                self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

                self.CORS_ORIGINS: List[str] = [
                        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
                ]

                if not 1 <= self.JPEG_QUALITY <= 95:
                        raise ValueError("JPEG_QUALITY must be between 1 and 95")


@lru_cache
def get_settings() -> Settings:
        """Return cached singleton Settings instance.

        Each worker process resolves environment variables once; tests that
        change the environment call get_settings.cache_clear().
        """
        return Settings()
