"""
스키마 생성 provider.

generate_schema(unit_name, properties) 는 JPA 2.1 Persistence.generateSchema() 와 같은 역할:
DB 연결 없이 영속성 유닛을 읽어 create/drop 스크립트만 쓴다.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from schemagen import properties as P
from schemagen.environment import ExecutionEnvironment
from schemagen.provider.context import bound_environment, current_environment
from schemagen.provider.ddl import build_metadata, create_statements, drop_statements, select_dialect, to_script
from schemagen.provider.errors import PersistenceError
from schemagen.provider.loader import UnitLoader

log = logging.getLogger(__name__)

SCRIPT_ACTIONS = {
    P.SCHEMA_GENERATION_NONE_ACTION,
    P.SCHEMA_GENERATION_CREATE_ACTION,
    P.SCHEMA_GENERATION_DROP_ACTION,
    P.SCHEMA_GENERATION_DROP_AND_CREATE_ACTION,
}

__all__ = [
    "GeneratedScripts",
    "PersistenceError",
    "bound_environment",
    "current_environment",
    "generate_schema",
]


@dataclass(frozen=True)
class GeneratedScripts:
    create_script: Optional[Path]
    drop_script: Optional[Path]
    tables: Tuple[str, ...] = ()


def _target(props: Mapping[str, Optional[str]], key: str) -> Path:
    name = props.get(key)
    if not name:
        raise PersistenceError(f"{key} must be set when scripts are generated")
    target = Path(name)
    if target.is_absolute():
        return target
    return Path(props.get(P.APP_LOCATION) or ".") / target


def generate_schema(
    unit_name: str,
    properties: Mapping[str, Optional[str]],
    environment: ExecutionEnvironment | None = None,
) -> GeneratedScripts:
    env = environment or current_environment()
    if env is None:
        raise PersistenceError("No execution environment available to load persistence unit " + unit_name)

    unit = UnitLoader(env).load(unit_name)
    # 유닛에 선언된 프로퍼티 < 호출자 프로퍼티
    props = {**unit.info.properties, **dict(properties)}

    db_action = (props.get(P.SCHEMA_GENERATION_DATABASE_ACTION) or P.SCHEMA_GENERATION_NONE_ACTION).lower()
    if db_action != P.SCHEMA_GENERATION_NONE_ACTION:
        raise PersistenceError(f"Database action '{db_action}' is not supported: scripts are generated without a database")

    action = (props.get(P.SCHEMA_GENERATION_SCRIPTS_ACTION) or P.SCHEMA_GENERATION_NONE_ACTION).lower()
    if action not in SCRIPT_ACTIONS:
        raise PersistenceError(f"Unknown scripts action '{action}'")

    dialect = select_dialect(props)
    md = build_metadata(unit, dialect)
    log.debug("Compiling %d tables with dialect %s", len(md.tables), dialect.name)

    writes = []
    create_path = drop_path = None
    if action in (P.SCHEMA_GENERATION_CREATE_ACTION, P.SCHEMA_GENERATION_DROP_AND_CREATE_ACTION):
        create_path = _target(props, P.SCHEMA_GENERATION_SCRIPTS_CREATE_TARGET)
        writes.append((create_path, to_script(create_statements(md, dialect))))
    if action in (P.SCHEMA_GENERATION_DROP_ACTION, P.SCHEMA_GENERATION_DROP_AND_CREATE_ACTION):
        drop_path = _target(props, P.SCHEMA_GENERATION_SCRIPTS_DROP_TARGET)
        writes.append((drop_path, to_script(drop_statements(md, dialect))))

    for path, text in writes:
        path.write_text(text, encoding="utf-8")
        log.debug("Wrote %s", path)

    return GeneratedScripts(create_path, drop_path, tuple(t.fullname for t in md.sorted_tables))
