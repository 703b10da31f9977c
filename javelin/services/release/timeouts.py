from __future__ import annotations

# GitHub REST calls (urllib applies this per socket operation, uploads included)
GH_TIMEOUT_SECONDS = 60.0

# Idempotent GitHub read retry policy (writes are never retried)
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
