from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from schemagen.errors import ConfigurationError, GenerationFailure, SchemagenError

# 설정 키 -> 값(미설정은 None)
GenerationConfig = Dict[str, Optional[str]]


@dataclass(frozen=True)
class PersistenceUnitRef:
    name: str
    search_root: Path

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ConfigurationError("No persistence unit name given")


@dataclass(frozen=True)
class ConnectionSettings:
    driver: Optional[str] = None
    url: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class OutputTarget:
    output_dir: Path
    create_filename: Optional[str] = "createDDL.sql"
    drop_filename: Optional[str] = "dropDDL.sql"

    def resolved(self) -> OutputTarget:
        return replace(self, output_dir=Path(self.output_dir).expanduser().resolve())

    @property
    def create_path(self) -> Optional[Path]:
        return self.output_dir / self.create_filename if self.create_filename else None

    @property
    def drop_path(self) -> Optional[Path]:
        return self.output_dir / self.drop_filename if self.drop_filename else None


class OutcomeStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationOutcome:
    status: OutcomeStatus
    create_script: Optional[Path] = None
    drop_script: Optional[Path] = None
    error: Optional[SchemagenError] = None

    @classmethod
    def succeeded(cls, create_script: Optional[Path], drop_script: Optional[Path]) -> GenerationOutcome:
        return cls(OutcomeStatus.SUCCEEDED, create_script=create_script, drop_script=drop_script)

    @classmethod
    def failed(cls, error: SchemagenError) -> GenerationOutcome:
        return cls(OutcomeStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    def raise_for_failure(self) -> None:
        if self.ok:
            return
        raise self.error or GenerationFailure("schema generation failed")
