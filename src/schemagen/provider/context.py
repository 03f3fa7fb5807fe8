"""
provider가 참조하는 ambient 실행 환경.

generate_schema()는 environment 인자를 우선 사용하고, 없을 때만 여기 바인딩된 값을 본다.
바인딩은 GeneratorThread 안에서만 일어나므로 호출자 스레드의 컨텍스트는 변하지 않는다.
"""
from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from schemagen.environment import ExecutionEnvironment

_current: ContextVar[Optional[ExecutionEnvironment]] = ContextVar("schemagen_environment", default=None)


def current_environment() -> Optional[ExecutionEnvironment]:
    return _current.get()


@contextmanager
def bound_environment(environment: ExecutionEnvironment) -> Iterator[ExecutionEnvironment]:
    token = _current.set(environment)
    try:
        yield environment
    finally:
        _current.reset(token)
