"""엔티티 메타데이터 -> SQLAlchemy MetaData -> CREATE/DROP 스크립트."""
from __future__ import annotations
import logging
import re
from typing import Dict, List, Mapping, Optional, Tuple

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Double,
    Float,
    ForeignKey,
    Integer,
    LargeBinary,
    MetaData,
    Numeric,
    SmallInteger,
    String,
    Table,
    Text,
    Time,
    Uuid,
)
from sqlalchemy.dialects import mssql, mysql, oracle, postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.engine.default import StrCompileDialect
from sqlalchemy.schema import CreateTable, DropTable
from sqlalchemy.types import TypeEngine

from schemagen import properties as P
from schemagen.provider import metadata as M
from schemagen.provider.errors import PersistenceError
from schemagen.provider.loader import LoadedUnit

log = logging.getLogger(__name__)

# EclipseLink TABLE/AUTO 시퀀싱용 테이블
SEQUENCE_TABLE = "sequence"

_DIALECTS = {
    "postgresql": postgresql.dialect,
    "mysql": mysql.dialect,
    "oracle": oracle.dialect,
    "mssql": mssql.dialect,
    "sqlite": sqlite.dialect,
    "generic": StrCompileDialect,
}

# jdbc:<subprotocol>:...
URL_DIALECTS = {
    "postgresql": "postgresql",
    "mysql": "mysql",
    "mariadb": "mysql",
    "oracle": "oracle",
    "sqlserver": "mssql",
    "sqlite": "sqlite",
}

DRIVER_DIALECTS = {
    "org.postgresql.Driver": "postgresql",
    "com.mysql.cj.jdbc.Driver": "mysql",
    "com.mysql.jdbc.Driver": "mysql",
    "org.mariadb.jdbc.Driver": "mysql",
    "oracle.jdbc.OracleDriver": "oracle",
    "oracle.jdbc.driver.OracleDriver": "oracle",
    "com.microsoft.sqlserver.jdbc.SQLServerDriver": "mssql",
    "org.sqlite.JDBC": "sqlite",
}

# eclipselink.target-database 값 (PostgreSQL, MySQL, Oracle11, SQLServer, ... 또는 *Platform 클래스명)
TARGET_DATABASE_DIALECTS = {
    "postgresql": "postgresql",
    "mysql": "mysql",
    "mariadb": "mysql",
    "oracle": "oracle",
    "sqlserver": "mssql",
    "sqlanywhere": "generic",
    "sqlite": "sqlite",
    "h2": "generic",
    "hsql": "generic",
    "derby": "generic",
    "database": "generic",
}

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def dialect_name(props: Mapping[str, Optional[str]]) -> str:
    target = props.get(P.TARGET_DATABASE)
    if target:
        key = target.rsplit(".", 1)[-1].lower()
        key = re.sub(r"platform$", "", key)
        key = re.sub(r"\d+$", "", key)
        if key not in TARGET_DATABASE_DIALECTS:
            raise PersistenceError(f"Unsupported target database: {target}")
        return TARGET_DATABASE_DIALECTS[key]

    url = props.get(P.JDBC_URL) or ""
    m = re.match(r"^jdbc:([a-z0-9]+):", url, re.IGNORECASE)
    if m:
        sub = m.group(1).lower()
        if sub in URL_DIALECTS:
            return URL_DIALECTS[sub]

    driver = props.get(P.JDBC_DRIVER) or ""
    # h2, hsqldb, derby 및 알 수 없는 DB는 범용 컴파일러로
    return DRIVER_DIALECTS.get(driver, "generic")


def select_dialect(props: Mapping[str, Optional[str]]) -> Dialect:
    return _DIALECTS[dialect_name(props)]()


def _basic_type(fqn: str, attr: M.Attribute) -> TypeEngine:
    col = attr.column
    if fqn == "java.lang.String":
        return Text() if attr.lob else String(col.length or 255)
    if fqn in ("java.lang.Integer", "int"):
        return Integer()
    if fqn in ("java.lang.Long", "long"):
        return BigInteger()
    if fqn in ("java.lang.Short", "short", "java.lang.Byte", "byte"):
        return SmallInteger()
    if fqn in ("java.lang.Boolean", "boolean"):
        return Boolean()
    if fqn in ("java.lang.Double", "double"):
        return Double()
    if fqn in ("java.lang.Float", "float"):
        return Float()
    if fqn in ("java.lang.Character", "char"):
        return String(1)
    if fqn == "java.math.BigDecimal":
        return Numeric(col.precision or 38, col.scale)
    if fqn == "java.math.BigInteger":
        return Numeric(col.precision or 38)
    if fqn in ("java.time.LocalDate", "java.sql.Date"):
        return Date()
    if fqn in ("java.time.LocalTime", "java.sql.Time"):
        return Time()
    if fqn == "java.time.OffsetDateTime":
        return DateTime(timezone=True)
    if fqn in ("java.time.LocalDateTime", "java.time.Instant", "java.util.Date", "java.util.Calendar", "java.sql.Timestamp"):
        return DateTime()
    if fqn == "java.util.UUID":
        return Uuid()
    if fqn in ("byte[]", "java.lang.Byte[]"):
        return LargeBinary(col.length)
    if fqn == "char[]":
        return Text() if attr.lob else String(col.length or 255)
    raise PersistenceError(f"No column type mapping for {fqn}")


def sql_type(attr: M.Attribute) -> TypeEngine:
    if attr.category == "enum":
        # @Enumerated 기본은 ORDINAL
        if attr.enumerated == "STRING":
            return String(attr.column.length or 255)
        return Integer()
    if attr.category != "basic" or not attr.resolved:
        raise PersistenceError(f"Attribute {attr.name} has no basic type")
    return _basic_type(attr.resolved, attr)


def _quote(name: str, dialect: Dialect) -> Optional[bool]:
    # 이름은 선언된 그대로 출력, 예약어/특수문자만 SQLAlchemy 가 인용하게 둔다
    if name.lower() in dialect.identifier_preparer.reserved_words or not _IDENT_RE.match(name):
        return None
    return False


def _column(name: str, type_: TypeEngine, dialect: Dialect, *args, **kw) -> Column:
    return Column(name, type_, *args, quote=_quote(name, dialect), **kw)


def _table(md: MetaData, entity_table: str, schema: Optional[str], columns: list, dialect: Dialect) -> Table:
    return Table(
        entity_table,
        md,
        *columns,
        schema=schema,
        quote=_quote(entity_table, dialect),
        quote_schema=_quote(schema, dialect) if schema else None,
    )


def _fk_target(entity: M.EntityDef, column: str) -> str:
    prefix = f"{entity.schema}.{entity.table_name}" if entity.schema else entity.table_name
    return f"{prefix}.{column}"


def build_metadata(unit: LoadedUnit, dialect: Dialect) -> MetaData:
    md = MetaData()

    pk: Dict[str, List[M.Attribute]] = {}
    for class_name, entity in unit.entities.items():
        ids = entity.id_attributes()
        if not ids:
            raise PersistenceError(f"Entity {class_name} has no primary key (no id attribute mapped)")
        pk[class_name] = ids

    def single_pk(target: str, owner: str, attr_name: str) -> M.Attribute:
        ids = pk[target]
        if len(ids) != 1:
            raise PersistenceError(f"{owner}.{attr_name} references {target}, which has a composite primary key")
        return ids[0]

    needs_sequence = False
    join_tables: List[Tuple[M.EntityDef, M.Attribute]] = []

    for class_name, entity in unit.entities.items():
        columns = []
        for attr in entity.attributes.values():
            if attr.kind in (M.ID, M.BASIC, M.VERSION):
                is_id = attr.kind == M.ID
                columns.append(_column(
                    attr.column_name,
                    sql_type(attr),
                    dialect,
                    primary_key=is_id,
                    nullable=False if is_id else (attr.column.nullable is not False),
                    unique=bool(attr.column.unique) and not is_id,
                    autoincrement=attr.generation == "IDENTITY",
                ))
                if attr.generation in ("AUTO", "TABLE"):
                    needs_sequence = True

            elif attr.kind in M.SINGLE_VALUED and not attr.mapped_by:
                target = unit.entities[attr.resolved]
                target_pk = single_pk(attr.resolved, class_name, attr.name)
                name = attr.join_column or f"{M.camel_to_snake(attr.name)}_{target_pk.column_name}"
                columns.append(_column(
                    name,
                    sql_type(target_pk),
                    dialect,
                    ForeignKey(_fk_target(target, target_pk.column_name)),
                    nullable=attr.join_nullable is not False,
                    unique=attr.kind == M.ONE_TO_ONE,
                ))

            elif attr.kind == M.MANY_TO_MANY and not attr.mapped_by:
                join_tables.append((entity, attr))

            elif attr.kind == M.ONE_TO_MANY:
                # FK 는 보통 반대편 ManyToOne 에 있다
                log.debug("Skipping one-to-many %s.%s", class_name, attr.name)

        _table(md, entity.table_name, entity.schema, columns, dialect)

    for owner, attr in join_tables:
        target = unit.entities[attr.resolved]
        owner_pk = single_pk(owner.class_name, owner.class_name, attr.name)
        target_pk = single_pk(target.class_name, owner.class_name, attr.name)
        jt = attr.join_table or M.JoinTableDef()
        name = jt.name or f"{owner.table_name}_{target.table_name}"
        left = jt.join_column or f"{M.camel_to_snake(owner.entity_name)}_{owner_pk.column_name}"
        right = jt.inverse_join_column or f"{M.camel_to_snake(attr.name)}_{target_pk.column_name}"
        _table(md, name, owner.schema, [
            _column(left, sql_type(owner_pk), dialect, ForeignKey(_fk_target(owner, owner_pk.column_name)), primary_key=True),
            _column(right, sql_type(target_pk), dialect, ForeignKey(_fk_target(target, target_pk.column_name)), primary_key=True),
        ], dialect)

    if needs_sequence and SEQUENCE_TABLE not in md.tables:
        _table(md, SEQUENCE_TABLE, None, [
            _column("seq_name", String(50), dialect, primary_key=True),
            _column("seq_count", Numeric(38), dialect),
        ], dialect)

    return md


def _render(element, dialect: Dialect) -> str:
    return str(element.compile(dialect=dialect)).strip() + ";"


def create_statements(md: MetaData, dialect: Dialect) -> List[str]:
    return [_render(CreateTable(t), dialect) for t in md.sorted_tables]


def drop_statements(md: MetaData, dialect: Dialect) -> List[str]:
    return [_render(DropTable(t), dialect) for t in reversed(md.sorted_tables)]


def to_script(statements: List[str]) -> str:
    return "\n\n".join(statements) + "\n"
