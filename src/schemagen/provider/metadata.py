"""엔티티 매핑 메타데이터 (어노테이션 + orm.xml 공통 표현)."""
from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

ID = "id"
BASIC = "basic"
VERSION = "version"
MANY_TO_ONE = "many-to-one"
ONE_TO_ONE = "one-to-one"
ONE_TO_MANY = "one-to-many"
MANY_TO_MANY = "many-to-many"
TRANSIENT = "transient"

SINGLE_VALUED = {MANY_TO_ONE, ONE_TO_ONE}


def camel_to_snake(name: str) -> str:
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


@dataclass
class ColumnDef:
    name: Optional[str] = None
    nullable: Optional[bool] = None
    unique: Optional[bool] = None
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None


@dataclass
class JoinTableDef:
    name: Optional[str] = None
    join_column: Optional[str] = None
    inverse_join_column: Optional[str] = None


@dataclass
class Attribute:
    name: str
    kind: str = BASIC
    type_name: Optional[str] = None
    column: ColumnDef = field(default_factory=ColumnDef)
    generation: Optional[str] = None     # IDENTITY / AUTO / SEQUENCE / TABLE
    enumerated: Optional[str] = None     # STRING / ORDINAL
    lob: bool = False
    target_entity: Optional[str] = None
    join_column: Optional[str] = None
    join_nullable: Optional[bool] = None
    join_table: Optional[JoinTableDef] = None
    mapped_by: Optional[str] = None
    # 환경에서 해석된 결과: category 는 basic / enum / entity
    resolved: Optional[str] = None
    category: Optional[str] = None

    @property
    def column_name(self) -> str:
        return self.column.name or camel_to_snake(self.name)


@dataclass
class EntityDef:
    class_name: str
    name: Optional[str] = None
    table: Optional[str] = None
    schema: Optional[str] = None
    access: Optional[str] = None
    superclass: Optional[str] = None
    package: str = ""
    imports: Tuple[str, ...] = ()
    attributes: Dict[str, Attribute] = field(default_factory=dict)

    @property
    def simple_name(self) -> str:
        return self.class_name.rsplit(".", 1)[-1]

    @property
    def entity_name(self) -> str:
        return self.name or self.simple_name

    @property
    def table_name(self) -> str:
        return self.table or camel_to_snake(self.entity_name)

    @property
    def virtual(self) -> bool:
        return (self.access or "").upper() == "VIRTUAL"

    def id_attributes(self) -> list[Attribute]:
        return [a for a in self.attributes.values() if a.kind == ID]

    def overlay(self, mapping: EntityDef) -> EntityDef:
        """mapping 파일 정의로 덮어쓴 사본을 반환 (XML이 어노테이션보다 우선)."""
        attributes = dict(self.attributes)
        for name, attr in mapping.attributes.items():
            base = self.attributes.get(name)
            if base is not None and attr.type_name is None:
                attr = replace(attr, type_name=base.type_name)
            attributes[name] = attr
        return replace(
            self,
            name=mapping.name or self.name,
            table=mapping.table or self.table,
            schema=mapping.schema or self.schema,
            access=mapping.access or self.access,
            attributes=attributes,
        )
