"""schemagen 오류 타입."""
from __future__ import annotations
from typing import Optional


class SchemagenError(Exception):
    kind = "SchemagenError"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class ConfigurationError(SchemagenError):
    """필수 설정 누락/오류. 워커 생성 전에 발생한다."""

    kind = "ConfigurationError"


class EnvironmentConstructionError(SchemagenError):
    """검색 환경(ExecutionEnvironment)을 만들 수 없음."""

    kind = "EnvironmentConstructionError"


class TypeResolutionError(EnvironmentConstructionError):
    kind = "TypeResolutionError"


class GenerationFailure(SchemagenError):
    """provider의 스키마 생성 실패. 원인 예외는 cause에 보존."""

    kind = "GenerationFailure"
