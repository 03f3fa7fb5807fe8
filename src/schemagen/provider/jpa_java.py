from __future__ import annotations
from dataclasses import dataclass, field
import re
from typing import Optional, Tuple

import javalang

from schemagen.provider import metadata as M
from schemagen.provider.errors import PersistenceError

# 본문 힌트: @Entity 중심
ENTITY_ANN_RE = re.compile(r"@\s*(?:[\w.]+\.)?Entity\b")

COLLECTION_TYPES = {"List", "Set", "Collection", "Iterable", "SortedSet"}

RELATION_KINDS = {
    "ManyToOne": M.MANY_TO_ONE,
    "OneToOne": M.ONE_TO_ONE,
    "OneToMany": M.ONE_TO_MANY,
    "ManyToMany": M.MANY_TO_MANY,
}

MAPPED_TYPE_ANNOTATIONS = {"Entity", "MappedSuperclass", "Embeddable"}


def looks_like_entity(text: str) -> bool:
    return bool(ENTITY_ANN_RE.search(text))


@dataclass
class ParsedType:
    name: str
    kind: str                      # class / enum / interface
    annotations: frozenset = frozenset()
    entity: Optional[M.EntityDef] = None
    package: str = ""
    imports: Tuple[str, ...] = ()
    wildcard_imports: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_entity(self) -> bool:
        return "Entity" in self.annotations

    @property
    def is_mapped_superclass(self) -> bool:
        return "MappedSuperclass" in self.annotations


def _ann_name(ann) -> str:
    return ann.name.rsplit(".", 1)[-1]


class JPAJavaParser:
    def parse(self, text: str, source: str = "", as_entity: bool = False) -> ParsedType:
        try:
            tree = javalang.parse.parse(text)
        except (javalang.parser.JavaSyntaxError, javalang.tokenizer.LexerError) as e:
            raise PersistenceError(f"Cannot parse Java source {source}: {e}") from e

        types = getattr(tree, "types", None) or []
        if not types:
            raise PersistenceError(f"No type declared in {source}")
        t = types[0]

        package = tree.package.name if tree.package else ""
        imports = tuple(i.path for i in (tree.imports or []) if not i.static and not i.wildcard)
        wildcards = tuple(i.path for i in (tree.imports or []) if not i.static and i.wildcard)
        fqn = f"{package}.{t.name}" if package else t.name

        if isinstance(t, javalang.tree.EnumDeclaration):
            kind = "enum"
        elif isinstance(t, javalang.tree.InterfaceDeclaration):
            kind = "interface"
        else:
            kind = "class"

        ann_names = frozenset(_ann_name(a) for a in (t.annotations or []))
        parsed = ParsedType(fqn, kind, ann_names, package=package, imports=imports, wildcard_imports=wildcards)
        if kind == "class" and (as_entity or ann_names & MAPPED_TYPE_ANNOTATIONS):
            parsed.entity = self._entity(t, fqn, package, imports)
        return parsed

    def _entity(self, t, fqn: str, package: str, imports: Tuple[str, ...]) -> M.EntityDef:
        entity = M.EntityDef(class_name=fqn, package=package, imports=imports)
        if t.extends is not None:
            entity.superclass = getattr(t.extends, "name", None)

        for a in (t.annotations or []):
            n = _ann_name(a)
            if n == "Entity":
                # @Entity(name="student") 가능
                entity.name = self._ann_kv(a, "name")
            elif n == "Table":
                entity.table = self._ann_kv(a, "name")
                entity.schema = self._ann_kv(a, "schema")
            elif n == "Access":
                entity.access = self._ann_single(a)

        for fd in getattr(t, "fields", []) or []:
            modifiers = fd.modifiers or set()
            if "static" in modifiers or "transient" in modifiers:
                continue
            anns = {_ann_name(a): a for a in (fd.annotations or [])}
            if "Transient" in anns:
                continue

            raw_type = self._simple_type(fd.type)
            for declarator in fd.declarators:
                attr = self._attribute(declarator.name, raw_type, anns)
                entity.attributes[attr.name] = attr
        return entity

    def _attribute(self, name: str, raw_type: str, anns: dict) -> M.Attribute:
        attr = M.Attribute(name=name, type_name=raw_type)

        # 관계 매핑 우선 처리
        for ann_name, kind in RELATION_KINDS.items():
            if ann_name in anns:
                attr.kind = kind
                attr.mapped_by = self._ann_kv(anns[ann_name], "mappedBy")
                break
        else:
            if "Id" in anns:
                attr.kind = M.ID
            elif "Version" in anns:
                attr.kind = M.VERSION

        if "Column" in anns:
            attr.column = self._column(anns["Column"])

        if "GeneratedValue" in anns:
            attr.generation = (self._ann_kv(anns["GeneratedValue"], "strategy") or "AUTO").upper()

        if "Enumerated" in anns:
            attr.enumerated = (self._ann_single(anns["Enumerated"]) or "ORDINAL").upper()

        if "Lob" in anns:
            attr.lob = True

        if "JoinColumn" in anns:
            jc = anns["JoinColumn"]
            attr.join_column = self._ann_kv(jc, "name")
            nullable = self._ann_kv(jc, "nullable")
            if nullable is not None:
                attr.join_nullable = nullable.lower() != "false"

        if "JoinTable" in anns:
            jt = anns["JoinTable"]
            attr.join_table = M.JoinTableDef(
                name=self._ann_kv(jt, "name"),
                join_column=self._ann_nested_joincol(jt, "joinColumns"),
                inverse_join_column=self._ann_nested_joincol(jt, "inverseJoinColumns"),
            )
        return attr

    def _column(self, ann) -> M.ColumnDef:
        col = M.ColumnDef(name=self._ann_kv(ann, "name"))

        nullable = self._ann_kv(ann, "nullable")
        if nullable is not None:
            col.nullable = (nullable.lower() != "false")

        unique = self._ann_kv(ann, "unique")
        if unique is not None:
            col.unique = (unique.lower() == "true")

        for key in ("length", "precision", "scale"):
            v = self._ann_kv(ann, key)
            if v is not None:
                try:
                    setattr(col, key, int(v))
                except ValueError as e:
                    raise PersistenceError(f"@Column({key}={v}) is not an integer literal") from e
        return col

    def _simple_type(self, t) -> str:
        # List<Book> 같은 경우: t.name == "List", t.arguments[0].type.name == "Book"
        name = t.name
        if name in COLLECTION_TYPES and getattr(t, "arguments", None):
            inner = getattr(t.arguments[0], "type", None)
            if inner is not None and getattr(inner, "name", None):
                return inner.name
        dims = len(getattr(t, "dimensions", None) or [])
        return name + "[]" * dims

    def _pairs(self, ann) -> list:
        return ann.element if isinstance(ann.element, list) else ([ann.element] if ann.element else [])

    def _ann_kv(self, ann, key: str) -> Optional[str]:
        for p in self._pairs(ann):
            if getattr(p, "name", None) == key and isinstance(p, javalang.tree.ElementValuePair):
                return self._literal(p.value)
        return None

    def _ann_single(self, ann) -> Optional[str]:
        # @Enumerated(EnumType.STRING) 처럼 값 하나만 있는 경우
        if ann.element is None:
            return None
        if isinstance(ann.element, list):
            return self._ann_kv(ann, "value")
        return self._literal(ann.element)

    def _ann_nested_joincol(self, ann, key: str) -> Optional[str]:
        # JoinTable 안에 joinColumns=@JoinColumn(name="x") 또는 {@JoinColumn(...)} 형태
        for p in self._pairs(ann):
            if getattr(p, "name", None) != key:
                continue
            v = p.value
            if isinstance(v, javalang.tree.ElementArrayValue):
                v = v.values[0] if v.values else None
            if isinstance(v, javalang.tree.Annotation) and _ann_name(v) == "JoinColumn":
                return self._ann_kv(v, "name")
        return None

    def _literal(self, node) -> Optional[str]:
        if isinstance(node, javalang.tree.MemberReference):
            return node.member
        s = getattr(node, "value", None)
        if not isinstance(s, str):
            return None
        return s.strip("\"'")
