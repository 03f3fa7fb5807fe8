"""provider 오류."""
from __future__ import annotations

from schemagen.errors import SchemagenError


class PersistenceError(SchemagenError):
    """provider 내부 오류 (EclipseLink의 PersistenceException 역할)."""

    kind = "PersistenceError"
