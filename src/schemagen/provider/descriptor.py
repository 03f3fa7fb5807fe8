"""
persistence.xml / orm.xml 파서.

JPA 버전마다 네임스페이스가 다르므로(java.sun.com, xmlns.jcp.org, jakarta.ee) 모든 조회는 {*} 와일드카드로 한다.
"""
from __future__ import annotations
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schemagen.provider import metadata as M
from schemagen.provider.errors import PersistenceError

PERSISTENCE_XML = "META-INF/persistence.xml"
DEFAULT_MAPPING_FILE = "META-INF/orm.xml"


@dataclass
class PersistenceUnitInfo:
    name: str
    classes: List[str] = field(default_factory=list)
    mapping_files: List[str] = field(default_factory=list)
    exclude_unlisted_classes: bool = True
    properties: Dict[str, str] = field(default_factory=dict)
    provider: Optional[str] = None
    source: str = ""


def _parse(text: str, source: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise PersistenceError(f"Malformed XML in {source or '<descriptor>'}: {e}") from e


def _text(el: Optional[ET.Element]) -> Optional[str]:
    if el is None or el.text is None:
        return None
    return el.text.strip() or None


def _bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() == "true"


def _int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise PersistenceError(f"Expected an integer, got {value!r}") from e


def parse_persistence_xml(text: str, source: str = "") -> List[PersistenceUnitInfo]:
    root = _parse(text, source)
    units: List[PersistenceUnitInfo] = []
    for pu in root.iterfind("{*}persistence-unit"):
        name = pu.get("name")
        if not name:
            raise PersistenceError(f"persistence-unit without a name in {source}")

        exclude = pu.find("{*}exclude-unlisted-classes")
        # 요소만 있고 값이 비어 있으면 true (XSD 기본값)
        exclude_unlisted = True if exclude is None else (_text(exclude) or "true").lower() != "false"

        props = {}
        for p in pu.iterfind("{*}properties/{*}property"):
            if p.get("name"):
                props[p.get("name")] = p.get("value", "")

        units.append(PersistenceUnitInfo(
            name=name,
            classes=[c for c in (_text(e) for e in pu.iterfind("{*}class")) if c],
            mapping_files=[m for m in (_text(e) for e in pu.iterfind("{*}mapping-file")) if m],
            exclude_unlisted_classes=exclude_unlisted,
            properties=props,
            provider=_text(pu.find("{*}provider")),
            source=source,
        ))
    return units


def _qualify(name: Optional[str], package: str) -> Optional[str]:
    if not name or "." in name or not package:
        return name
    return f"{package}.{name}"


def _column(el: Optional[ET.Element]) -> M.ColumnDef:
    if el is None:
        return M.ColumnDef()
    return M.ColumnDef(
        name=el.get("name"),
        nullable=_bool(el.get("nullable")),
        unique=_bool(el.get("unique")),
        length=_int(el.get("length")),
        precision=_int(el.get("precision")),
        scale=_int(el.get("scale")),
    )


def _attribute(el: ET.Element, kind: str, package: str) -> M.Attribute:
    name = el.get("name")
    if not name:
        raise PersistenceError(f"<{kind}> mapping without a name")

    attr = M.Attribute(
        name=name,
        kind=kind,
        type_name=el.get("attribute-type"),
        column=_column(el.find("{*}column")),
        lob=el.find("{*}lob") is not None,
        target_entity=_qualify(el.get("target-entity"), package),
        mapped_by=el.get("mapped-by"),
    )

    gv = el.find("{*}generated-value")
    if gv is not None:
        attr.generation = (gv.get("strategy") or "AUTO").upper()

    enumerated = el.find("{*}enumerated")
    if enumerated is not None:
        attr.enumerated = (_text(enumerated) or "ORDINAL").upper()

    jc = el.find("{*}join-column")
    if jc is not None:
        attr.join_column = jc.get("name")
        attr.join_nullable = _bool(jc.get("nullable"))

    jt = el.find("{*}join-table")
    if jt is not None:
        inner = jt.find("{*}join-column")
        inverse = jt.find("{*}inverse-join-column")
        attr.join_table = M.JoinTableDef(
            name=jt.get("name"),
            join_column=inner.get("name") if inner is not None else None,
            inverse_join_column=inverse.get("name") if inverse is not None else None,
        )
    return attr


_ATTRIBUTE_KINDS = (
    M.ID, M.BASIC, M.VERSION, M.MANY_TO_ONE, M.ONE_TO_ONE, M.ONE_TO_MANY, M.MANY_TO_MANY, M.TRANSIENT,
)


def parse_mapping_file(text: str, source: str = "") -> List[M.EntityDef]:
    root = _parse(text, source)
    package = _text(root.find("{*}package")) or ""

    entities: List[M.EntityDef] = []
    for el in root.iterfind("{*}entity"):
        class_name = _qualify(el.get("class"), package)
        if not class_name:
            raise PersistenceError(f"<entity> without a class in {source}")

        table = el.find("{*}table")
        entity = M.EntityDef(
            class_name=class_name,
            name=el.get("name"),
            table=table.get("name") if table is not None else None,
            schema=table.get("schema") if table is not None else None,
            access=el.get("access") or _text(el.find("{*}access")),
            package=class_name.rpartition(".")[0],
        )

        attrs = el.find("{*}attributes")
        if attrs is not None:
            for child in attrs:
                kind = child.tag.rpartition("}")[2]
                if kind in _ATTRIBUTE_KINDS:
                    a = _attribute(child, kind, package)
                    entity.attributes[a.name] = a
        entities.append(entity)
    return entities
