"""Loading of the profile JSON schema embedded in extraction prompts.

The schema is treated as an opaque contract: it is read and pasted into the
prompt, never interpreted field by field.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from cvbot.core.errors import ConfigurationAppError, NotFoundAppError

logger = logging.getLogger(__name__)


def load_profile_schema(path: Path) -> dict[str, Any]:
    """Read and parse the profile schema.

    Args:
        path: Location of the JSON schema file.

    Returns:
        The schema document.

    Raises:
        NotFoundAppError: If the file does not exist.
        ConfigurationAppError: If the file is not a JSON object.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.error("profile_schema.missing", extra={"schema_path": str(path)})
        raise NotFoundAppError(
            code="profile_schema_not_found",
            message="Profile schema not found",
            details={"path": str(path)},
        ) from None

    try:
        schema = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationAppError(
            code="profile_schema_invalid",
            message=f"Profile schema is not valid JSON: {exc.msg}",
            details={"path": str(path)},
        ) from exc

    if not isinstance(schema, dict):
        raise ConfigurationAppError(
            code="profile_schema_invalid",
            message="Profile schema must be a JSON object",
            details={"path": str(path)},
        )
    return schema
