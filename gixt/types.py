"""
Shared type definitions for the gixt package.

Centralizes common type annotations used across multiple modules.
"""

from datetime import datetime
from typing import Annotated, Literal

import pydantic

# Pydantic-enhanced datetime for JSON serialization (allows string->datetime conversion)
JsonDatetime = Annotated[datetime, pydantic.Field(strict=False)]

TrustMode = Literal['never', 'mine', 'all']
CacheMode = Literal['never', 'cache']
ExecMode = Literal['isolate', 'cwd']
TrustAnswer = Literal['yes', 'no', 'view']
