"""Dream Recorder device installer (Python-first, step-driven).

Core design goals:
- Ordered, explicit step table with per-step fatal/non-fatal semantics
- Idempotent re-runs (existing secrets/config are never re-collected)
- External tools (apt, docker, systemd, browser) invoked only via their CLIs
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
