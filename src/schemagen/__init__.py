"""JPA 영속성 유닛 DDL 스크립트 생성기."""
from schemagen.commands.generate import run_generate
from schemagen.environment import ExecutionEnvironment, build_environment
from schemagen.errors import (
    ConfigurationError,
    EnvironmentConstructionError,
    GenerationFailure,
    SchemagenError,
    TypeResolutionError,
)
from schemagen.invoker import GenerationInvocation, invoke_generation
from schemagen.merger import merge_config
from schemagen.model import GenerationOutcome

__all__ = [
    "ConfigurationError",
    "EnvironmentConstructionError",
    "ExecutionEnvironment",
    "GenerationFailure",
    "GenerationInvocation",
    "GenerationOutcome",
    "SchemagenError",
    "TypeResolutionError",
    "build_environment",
    "invoke_generation",
    "merge_config",
    "run_generate",
]
