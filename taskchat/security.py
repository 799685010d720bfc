"""
TaskChat - Startup Validation

Configuration checks run once at startup.
"""

import logging
import warnings
from typing import Optional

from taskchat.config import settings
from taskchat.chat.llm import InferenceClient, InferenceNotConfiguredError

logger = logging.getLogger(__name__)


def validate_security_config() -> None:
    """
    Validate security configuration on startup.

    Issues warnings for insecure configurations but does not crash the application
    (to allow tests and development to run).
    """
    # CORS validation
    if "*" in str(settings.CORS_ORIGINS):
        warnings.warn(
            "SECURITY WARNING: CORS wildcard (*) detected. "
            "Set specific origins via CORS_ORIGINS.",
            UserWarning,
        )


def validate_inference_config() -> Optional[InferenceClient]:
    """
    Build the process-wide inference client.

    A missing API key is a configuration error, reported here once rather
    than as a per-request call failure. Returns None in that case and the
    dispatcher runs on the keyword fallback.
    """
    try:
        client = InferenceClient()
    except InferenceNotConfiguredError as e:
        logger.error(f"Inference is not configured: {e} Chat will use keyword fallback only.")
        return None

    logger.info(f"Inference client configured (model={client.model}, base_url={settings.LLM_BASE_URL})")
    return client
