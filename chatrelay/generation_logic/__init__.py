"""Generation logic package.

This package groups the helpers that shape user input before it reaches the
model tiers (upload triage). Keeping them here allows `chatrelay/api/routes.py`
to stay focused on HTTP routing while the data-shaping lives in composable
modules.
"""

from .upload_triage import build_upload_message  # noqa: F401
