"""
영속성 유닛 로딩: persistence.xml 탐색 -> 매핑 파일/소스 해석 -> 엔티티 메타데이터.

모든 리소스와 타입 조회는 ExecutionEnvironment 를 통해서만 한다.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schemagen.environment import ExecutionEnvironment, ResolvedType, TypeKind
from schemagen.errors import TypeResolutionError
from schemagen.provider import metadata as M
from schemagen.provider.descriptor import (
    DEFAULT_MAPPING_FILE,
    PERSISTENCE_XML,
    PersistenceUnitInfo,
    parse_mapping_file,
    parse_persistence_xml,
)
from schemagen.provider.errors import PersistenceError
from schemagen.provider.jpa_java import JPAJavaParser, ParsedType, looks_like_entity

log = logging.getLogger(__name__)

# 가상 속성에 attribute-type 이 없으면 String 으로 본다
DEFAULT_VIRTUAL_TYPE = "java.lang.String"


@dataclass
class LoadedUnit:
    info: PersistenceUnitInfo
    entities: Dict[str, M.EntityDef] = field(default_factory=dict)


def _load(resource) -> str:
    return resource.read_text(encoding="utf-8", errors="ignore")


class UnitLoader:
    def __init__(self, environment: ExecutionEnvironment, parser: JPAJavaParser | None = None):
        self.environment = environment
        self.parser = parser or JPAJavaParser()
        self._parsed: Dict[str, ParsedType] = {}

    def find_unit(self, unit_name: str) -> PersistenceUnitInfo:
        descriptors = self.environment.find_resources(PERSISTENCE_XML)
        if not descriptors:
            locations = ", ".join(str(loc) for loc in self.environment.locations)
            raise PersistenceError(f"No {PERSISTENCE_XML} found in search path [{locations}]")

        available: List[str] = []
        for d in descriptors:
            for unit in parse_persistence_xml(_load(d), source=str(d)):
                if unit.name == unit_name:
                    log.debug("Found persistence unit %s in %s", unit_name, d)
                    return unit
                available.append(unit.name)
        raise PersistenceError(f"No persistence unit named '{unit_name}' found (available: {', '.join(available) or 'none'})")

    def load(self, unit_name: str) -> LoadedUnit:
        info = self.find_unit(unit_name)
        mappings = self._load_mappings(info)

        class_names: List[str] = list(info.classes)
        class_names += [c for c in mappings if c not in class_names]
        if not info.exclude_unlisted_classes:
            class_names += [c for c in self._scan_entities() if c not in class_names]

        unit = LoadedUnit(info=info)
        for class_name in class_names:
            unit.entities[class_name] = self._entity(class_name, mappings.get(class_name))

        for entity in unit.entities.values():
            for attr in entity.attributes.values():
                self._resolve_attribute(unit, entity, attr)

        log.info("Loaded persistence unit %s with %d entities", unit_name, len(unit.entities))
        return unit

    def _load_mappings(self, info: PersistenceUnitInfo) -> Dict[str, M.EntityDef]:
        files = list(info.mapping_files)
        # META-INF/orm.xml 은 명시하지 않아도 있으면 읽는다
        if DEFAULT_MAPPING_FILE not in files and self.environment.find_resource(DEFAULT_MAPPING_FILE) is not None:
            files.insert(0, DEFAULT_MAPPING_FILE)

        mappings: Dict[str, M.EntityDef] = {}
        for name in files:
            res = self.environment.find_resource(name)
            if res is None:
                raise PersistenceError(f"Mapping file {name} not found")
            for entity in parse_mapping_file(_load(res), source=str(res)):
                mappings[entity.class_name] = entity
        return mappings

    def _scan_entities(self) -> List[str]:
        found = []
        for src in self.environment.iter_sources(".java"):
            text = _load(src)
            if not looks_like_entity(text):
                continue
            parsed = self.parser.parse(text, source=str(src))
            if parsed.is_entity:
                self._parsed.setdefault(parsed.name, parsed)
                found.append(parsed.name)
        return found

    def _parse_type(self, rt: ResolvedType, as_entity: bool = False) -> ParsedType:
        cached = self._parsed.get(rt.name)
        if cached is not None and (cached.entity is not None or not as_entity):
            return cached
        parsed = self.parser.parse(rt.read_source(), source=str(rt.source), as_entity=as_entity)
        self._parsed[rt.name] = parsed
        return parsed

    def _entity(self, class_name: str, mapping: Optional[M.EntityDef]) -> M.EntityDef:
        parsed = self._parsed.get(class_name)
        if parsed is None or parsed.entity is None:
            try:
                rt = self.environment.resolve(class_name)
            except TypeResolutionError as e:
                raise PersistenceError(f"Cannot resolve entity class {class_name}") from e
            if rt.kind is TypeKind.HOST:
                raise PersistenceError(f"{class_name} is not an entity class")
            if rt.kind is TypeKind.VIRTUAL:
                # 소스가 없는 엔티티: 매핑 파일의 정의가 전부다
                entity = mapping or M.EntityDef(class_name=class_name, package=class_name.rpartition(".")[0])
                return self._default_types(entity)
            parsed = self._parse_type(rt, as_entity=mapping is not None)
            if parsed.entity is None:
                raise PersistenceError(f"{class_name} is not annotated with @Entity and has no mapping-file entry")

        entity = self._with_superclasses(parsed.entity, parsed)
        return self._default_types(entity.overlay(mapping) if mapping else entity)

    def _default_types(self, entity: M.EntityDef) -> M.EntityDef:
        for attr in entity.attributes.values():
            if attr.type_name is None and attr.kind in (M.ID, M.BASIC, M.VERSION):
                attr.type_name = DEFAULT_VIRTUAL_TYPE
        return entity

    def _with_superclasses(self, entity: M.EntityDef, parsed: ParsedType) -> M.EntityDef:
        # @MappedSuperclass 필드는 하위 엔티티 테이블에 포함된다
        if not entity.superclass:
            return entity
        for candidate in self._candidates(entity.superclass, parsed.package, parsed.imports, parsed.wildcard_imports):
            rt = self.environment.lookup(candidate)
            if rt is None or rt.kind is not TypeKind.COMPILED:
                continue
            parent = self._parse_type(rt)
            if not parent.is_mapped_superclass or parent.entity is None:
                return entity
            base = self._with_superclasses(parent.entity, parent)
            attributes = dict(base.attributes)
            attributes.update(entity.attributes)
            entity.attributes = attributes
            return entity
        return entity

    def _candidates(self, type_name: str, package: str, imports=(), wildcards=()) -> List[str]:
        if "." in type_name or type_name.endswith("]") or type_name[:1].islower():
            return [type_name]
        names = [i for i in imports if i.rsplit(".", 1)[-1] == type_name]
        if package:
            names.append(f"{package}.{type_name}")
        names += [f"{w}.{type_name}" for w in wildcards]
        names += [f"java.lang.{type_name}", type_name]
        return names

    def _resolve_attribute(self, unit: LoadedUnit, entity: M.EntityDef, attr: M.Attribute) -> None:
        if attr.kind == M.TRANSIENT:
            return
        type_name = attr.target_entity or attr.type_name
        if not type_name:
            raise PersistenceError(f"Cannot determine the type of {entity.class_name}.{attr.name}")

        parsed = self._parsed.get(entity.class_name)
        imports = parsed.imports if parsed else entity.imports
        wildcards = parsed.wildcard_imports if parsed else ()
        candidates = self._candidates(type_name, entity.package, imports, wildcards)

        for name in candidates:
            if name in unit.entities:
                attr.resolved, attr.category = name, "entity"
                return
        for e in unit.entities.values():
            if e.simple_name == type_name or e.entity_name == type_name:
                attr.resolved, attr.category = e.class_name, "entity"
                return

        if attr.kind not in (M.ID, M.BASIC, M.VERSION):
            raise PersistenceError(f"{entity.class_name}.{attr.name} targets {type_name}, which is not an entity of this unit")

        for name in candidates:
            rt = self.environment.lookup(name)
            if rt is None:
                continue
            if rt.kind is TypeKind.HOST:
                attr.resolved, attr.category = rt.name, "basic"
                return
            if self._parse_type(rt).kind == "enum":
                attr.resolved, attr.category = rt.name, "enum"
                return
            raise PersistenceError(f"Unsupported attribute type {rt.name} for {entity.class_name}.{attr.name}")

        try:
            rt = self.environment.resolve(candidates[0])
        except TypeResolutionError as e:
            raise PersistenceError(f"Cannot resolve type {type_name} of {entity.class_name}.{attr.name}") from e
        raise PersistenceError(
            f"Unsupported attribute type {type_name} for {entity.class_name}.{attr.name} ({rt.kind.value} type)"
        )
