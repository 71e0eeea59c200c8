"""Simple configuration for docsrs-links."""

import os
import warnings

# Documentation hosts
DOCSRS_URL = os.getenv("DOCSRS_URL", "https://docs.rs").rstrip("/")
STDLIB_URL = os.getenv("DOCSRS_STDLIB_URL", "https://doc.rust-lang.org").rstrip("/")
STDLIB_CHANNEL = os.getenv("DOCSRS_STDLIB_CHANNEL", "nightly")
if STDLIB_CHANNEL not in {"stable", "beta", "nightly"}:
    warnings.warn(
        f"Unknown stdlib channel {STDLIB_CHANNEL!r}, using 'nightly'", stacklevel=2
    )
    STDLIB_CHANNEL = "nightly"

# HTTP configuration
HTTP_TIMEOUT = float(os.getenv("DOCSRS_HTTP_TIMEOUT", "30.0"))
MAX_DOWNLOAD_SIZE = int(
    os.getenv("DOCSRS_MAX_DOWNLOAD_SIZE", str(50 * 1024 * 1024))
)  # 50MB, the nightly std index is the largest payload we see
DOWNLOAD_CHUNK_SIZE = int(os.getenv("DOCSRS_DOWNLOAD_CHUNK_SIZE", "8192"))
HTTP_RETRY_ATTEMPTS = int(os.getenv("DOCSRS_HTTP_RETRY_ATTEMPTS", "3"))
if not 1 <= HTTP_RETRY_ATTEMPTS <= 10:
    warnings.warn(
        f"Retry attempts {HTTP_RETRY_ATTEMPTS} out of range (1-10), using 3",
        stacklevel=2,
    )
    HTTP_RETRY_ATTEMPTS = 3

# Standard library configuration
STDLIB_CRATES = {"std", "core", "alloc", "proc_macro", "test"}

# Logging
LOG_LEVEL = os.getenv("DOCSRS_LOG_LEVEL", "WARNING").upper()

# Version for User-Agent header
VERSION = "0.1.0"
USER_AGENT = f"docsrs-links/{VERSION}"
