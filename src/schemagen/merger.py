"""설정 병합: 기본값 < 명시 설정 < 사용자 프로퍼티."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from schemagen import properties as P
from schemagen.errors import ConfigurationError
from schemagen.model import ConnectionSettings, GenerationConfig, OutputTarget

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyConflict:
    key: str
    old: Optional[str]
    new: Optional[str]


def defaults() -> GenerationConfig:
    # 로컬 트랜잭션, datasource 없음, 스크립트만 생성(DB 액션 없음)
    return {
        P.TRANSACTION_TYPE: P.RESOURCE_LOCAL,
        P.JTA_DATASOURCE: None,
        P.NON_JTA_DATASOURCE: None,
        P.VALIDATION_MODE: P.VALIDATION_NONE,
        P.SCHEMA_GENERATION_SCRIPTS_ACTION: P.SCHEMA_GENERATION_DROP_AND_CREATE_ACTION,
        P.SCHEMA_GENERATION_DATABASE_ACTION: P.SCHEMA_GENERATION_NONE_ACTION,
    }


def named_settings(connection: ConnectionSettings, output: OutputTarget) -> GenerationConfig:
    config: GenerationConfig = {
        P.JDBC_DRIVER: connection.driver,
        P.JDBC_URL: connection.url,
    }
    if connection.user:
        config[P.JDBC_USER] = connection.user
    if connection.password:
        config[P.JDBC_PASSWORD] = connection.password

    config[P.APP_LOCATION] = str(output.resolved().output_dir)
    if output.create_filename:
        config[P.SCHEMA_GENERATION_SCRIPTS_CREATE_TARGET] = output.create_filename
    if output.drop_filename:
        config[P.SCHEMA_GENERATION_SCRIPTS_DROP_TARGET] = output.drop_filename
    return config


def find_conflicts(base: Mapping[str, Optional[str]], overrides: Mapping[str, Optional[str]]) -> List[PropertyConflict]:
    return [
        PropertyConflict(key, old, overrides[key])
        for key, old in base.items()
        if key in overrides and overrides[key] != old
    ]


def merge_config(
    connection: ConnectionSettings,
    output: OutputTarget,
    overrides: Mapping[str, Optional[str]] | None = None,
) -> GenerationConfig:
    config = defaults()
    config.update(named_settings(connection, output))

    if overrides:
        # 충돌은 에러가 아니라 경고만 남기고 덮어쓴다
        for c in find_conflicts(config, overrides):
            log.warning("property %s will overwrite the existing value '%s' with '%s'", c.key, c.old, c.new)
        config.update(overrides)

    validate_config(config)
    return config


def validate_config(config: Mapping[str, Optional[str]]) -> None:
    location = config.get(P.APP_LOCATION)
    if not location:
        raise ConfigurationError(f"No output directory configured ({P.APP_LOCATION} is unset)")
    if not Path(location).is_absolute():
        raise ConfigurationError(f"Output directory must be absolute: {location}")

    for key in (P.JDBC_DRIVER, P.JDBC_URL):
        if not config.get(key):
            log.debug("%s is not set", key)


def prepare_output_dir(path: Path | str | None) -> Path:
    """출력 디렉터리를 만들고 절대경로를 반환. 실패 시 ConfigurationError."""
    if path is None or str(path) == "":
        raise ConfigurationError("No output directory specified")
    out = Path(path).expanduser().resolve()
    if out.exists() and not out.is_dir():
        raise ConfigurationError(f"Cannot create output directory {out}: a file with that name exists")
    try:
        out.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output directory {out}", cause=e) from e
    return out
