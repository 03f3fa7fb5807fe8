"""
영속성 유닛 전용 리소스/타입 검색 환경.

레이어 구성:
  HostEnvironment      호스트가 공유하는 JDK 기본 타입만 해석 (리소스는 노출하지 않음)
  ScopedEnvironment    지정한 루트(디렉터리 또는 jar/zip)만 검색, 없으면 부모에게 위임
  ExecutionEnvironment 동적 레이어: 소스가 없는 VIRTUAL 엔티티 타입을 즉석에서 합성
"""
from __future__ import annotations
import logging
import threading
import zipfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from schemagen.errors import ConfigurationError, EnvironmentConstructionError, TypeResolutionError

log = logging.getLogger(__name__)

# 순서 중요: 단순 이름(Date 등)이 겹치면 먼저 나온 쪽이 이긴다
BASIC_TYPES: tuple[str, ...] = (
    "java.lang.String",
    "java.lang.Integer", "int",
    "java.lang.Long", "long",
    "java.lang.Short", "short",
    "java.lang.Byte", "byte",
    "java.lang.Boolean", "boolean",
    "java.lang.Double", "double",
    "java.lang.Float", "float",
    "java.lang.Character", "char",
    "java.math.BigDecimal",
    "java.math.BigInteger",
    "java.time.LocalDate",
    "java.time.LocalDateTime",
    "java.time.LocalTime",
    "java.time.OffsetDateTime",
    "java.time.Instant",
    "java.util.Date",
    "java.util.Calendar",
    "java.sql.Date",
    "java.sql.Time",
    "java.sql.Timestamp",
    "java.util.UUID",
    "byte[]",
    "java.lang.Byte[]",
    "char[]",
)


class TypeKind(Enum):
    COMPILED = "compiled"
    HOST = "host"
    VIRTUAL = "virtual"


@dataclass(frozen=True)
class ResolvedType:
    name: str
    kind: TypeKind
    source: Any = None  # Path 또는 zipfile.Path

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def read_source(self) -> str:
        if self.source is None:
            raise TypeResolutionError(f"{self.name} has no source")
        return self.source.read_text(encoding="utf-8", errors="ignore")


class HostEnvironment:
    def __init__(self, types: Sequence[str] = BASIC_TYPES):
        self._types: Dict[str, str] = {}
        for fqn in types:
            self._types.setdefault(fqn, fqn)
            self._types.setdefault(fqn.rsplit(".", 1)[-1], fqn)

    def resolve(self, name: str) -> Optional[ResolvedType]:
        fqn = self._types.get(name)
        return ResolvedType(fqn, TypeKind.HOST) if fqn else None

    def find_resources(self, name: str) -> List[Any]:
        return []


def _walk(node) -> Iterator[Any]:
    for child in node.iterdir():
        if child.is_dir():
            yield from _walk(child)
        else:
            yield child


class ScopedEnvironment:
    def __init__(self, locations: Sequence[Any], parent: HostEnvironment):
        self.locations = tuple(locations)
        self.parent = parent

    def find_resources(self, name: str) -> List[Any]:
        parts = [p for p in name.strip("/").split("/") if p]
        hits = []
        for loc in self.locations:
            candidate = loc.joinpath(*parts)
            if candidate.is_file():
                hits.append(candidate)
        return hits + self.parent.find_resources(name)

    def find_resource(self, name: str) -> Optional[Any]:
        hits = self.find_resources(name)
        return hits[0] if hits else None

    def find_class_source(self, class_name: str) -> Optional[Any]:
        if not class_name or "[" in class_name:
            return None
        rel = class_name.replace(".", "/") + ".java"
        for loc in self.locations:
            candidate = loc.joinpath(*rel.split("/"))
            if candidate.is_file():
                return candidate
        return None

    def resolve(self, name: str) -> Optional[ResolvedType]:
        source = self.find_class_source(name)
        if source is not None:
            return ResolvedType(name, TypeKind.COMPILED, source)
        return self.parent.resolve(name)

    def iter_sources(self, suffix: str = ".java") -> Iterator[Any]:
        for loc in self.locations:
            for f in _walk(loc):
                if f.name.endswith(suffix):
                    yield f


class ExecutionEnvironment:
    """한 번의 생성 호출 전용 환경. 여러 호출이 공유하지 않는다."""

    def __init__(
        self,
        scoped: ScopedEnvironment,
        dynamic: bool = True,
        closers: Sequence[Callable[[], None]] = (),
    ):
        self.scoped = scoped
        self.dynamic = dynamic
        self._closers = list(closers)
        self._virtual: Dict[str, ResolvedType] = {}
        self._lock = threading.Lock()
        self._claimed = False
        self._closed = False

    @property
    def locations(self) -> tuple:
        return self.scoped.locations

    def find_resource(self, name: str):
        return self.scoped.find_resource(name)

    def find_resources(self, name: str) -> List[Any]:
        return self.scoped.find_resources(name)

    def iter_sources(self, suffix: str = ".java") -> Iterator[Any]:
        return self.scoped.iter_sources(suffix)

    def lookup(self, name: str) -> Optional[ResolvedType]:
        """합성 없이 로컬/호스트에서만 찾는다."""
        return self.scoped.resolve(name)

    def resolve(self, name: str) -> ResolvedType:
        found = self.scoped.resolve(name)
        if found is not None:
            return found
        if not self.dynamic:
            raise TypeResolutionError(f"Cannot resolve type {name}")
        with self._lock:
            if name not in self._virtual:
                log.debug("Synthesizing virtual type %s", name)
                self._virtual[name] = ResolvedType(name, TypeKind.VIRTUAL)
            return self._virtual[name]

    def claim(self) -> None:
        with self._lock:
            if self._claimed:
                raise EnvironmentConstructionError("Execution environment is already bound to an invocation")
            self._claimed = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for close in self._closers:
            close()

    def __enter__(self) -> ExecutionEnvironment:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _open_location(path: Path, closers: list) -> Any:
    if path.is_dir():
        return path
    if path.is_file():
        try:
            if zipfile.is_zipfile(path):
                zf = zipfile.ZipFile(path)
                closers.append(zf.close)
                return zipfile.Path(zf)
        except OSError as e:
            raise EnvironmentConstructionError(f"Cannot open archive {path}", cause=e) from e
        raise EnvironmentConstructionError(f"Search location is neither a directory nor an archive: {path}")
    raise EnvironmentConstructionError(f"Search location does not exist: {path}")


def build_environment(
    search_root: Path | str | None,
    fallback: Path | str | None = None,
    dynamic: bool = True,
    host: HostEnvironment | None = None,
) -> ExecutionEnvironment:
    """
    search_root(필수)와 선택적 fallback(컴파일 산출물)만 검색하는 환경을 만든다.
    """
    if search_root is None or not str(search_root).strip():
        raise ConfigurationError("No search root (input directory) defined")

    closers: list = []
    root = Path(search_root).expanduser().resolve()
    locations = [_open_location(root, closers)]
    log.debug("Added search root to resource search path: %s", root)

    if fallback:
        fb = Path(fallback).expanduser().resolve()
        if fb.exists():
            try:
                locations.append(_open_location(fb, closers))
            except EnvironmentConstructionError:
                for close in closers:
                    close()
                raise
            log.debug("Added fallback location to resource search path: %s", fb)
        else:
            log.debug("Fallback location %s does not exist, skipped", fb)

    scoped = ScopedEnvironment(locations, parent=host or HostEnvironment())
    return ExecutionEnvironment(scoped, dynamic=dynamic, closers=closers)
