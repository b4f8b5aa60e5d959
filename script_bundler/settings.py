"""Settings for a bundle build."""
from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

ENV_PREFIX = "BUNDLE_"


class BuildSettings(BaseModel):
    """Options recognised by the script bundle builder."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    minify_code: bool = False
    preserve_important_comments: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildSettings":
        """Read ``BUNDLE_MINIFY_CODE`` and ``BUNDLE_PRESERVE_IMPORTANT_COMMENTS``."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw.strip()
        return cls(**values)
