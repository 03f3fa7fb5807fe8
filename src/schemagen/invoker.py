"""
스키마 생성 실행기.

provider 호출은 전용 워커 스레드 하나에서 실행하고 호출자는 join 으로 기다린다.
워커 스레드에만 ExecutionEnvironment 를 ambient 컨텍스트로 바인딩하므로
호출자 스레드의 컨텍스트는 영향을 받지 않는다.
"""
from __future__ import annotations
import logging
import threading
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from schemagen import properties as P
from schemagen.environment import ExecutionEnvironment
from schemagen.errors import GenerationFailure, SchemagenError
from schemagen.model import GenerationOutcome
from schemagen.provider import GeneratedScripts, bound_environment, generate_schema

log = logging.getLogger(__name__)

GenerateFn = Callable[..., GeneratedScripts]


class InvocationState(Enum):
    CREATED = "created"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def describe_properties(config: Mapping[str, Optional[str]]) -> str:
    lines = []
    for key, value in config.items():
        shown = "****" if key in P.SECRET_KEYS and value else value
        lines.append(f"{key}={shown}")
    return "\n".join(lines)


class GeneratorThread(threading.Thread):
    """
    provider 를 실행하는 워커.
    run() 안에서만 environment 가 ambient 컨텍스트로 바인딩된다.
    """

    def __init__(
        self,
        unit_name: str,
        environment: ExecutionEnvironment,
        config: Mapping[str, Optional[str]],
        generate: GenerateFn = generate_schema,
    ):
        super().__init__(name=f"schemagen-{unit_name}", daemon=True)
        self.unit_name = unit_name
        self.environment = environment
        self.config = config
        self._generate = generate
        self.result: Optional[GeneratedScripts] = None
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        log.info("Generating schema for persistence unit %s", self.unit_name)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("ddl generation properties:\n%s", describe_properties(self.config))
        try:
            with bound_environment(self.environment):
                self.result = self._generate(self.unit_name, self.config, environment=self.environment)
        except BaseException as e:
            # SystemExit 등도 결과로 남겨 호출자가 하나의 outcome 으로 보고하게 한다
            self.error = e
            return
        log.info("DDL files have been written to %s", self.config.get(P.APP_LOCATION))


def _as_failure(unit_name: str, error: BaseException) -> GenerationFailure:
    if isinstance(error, GenerationFailure):
        return error
    return GenerationFailure(f"Schema generation failed for persistence unit {unit_name}", cause=error)


class GenerationInvocation:
    def __init__(
        self,
        unit_name: str,
        config: Mapping[str, Optional[str]],
        environment: ExecutionEnvironment,
        generate: GenerateFn = generate_schema,
        timeout: Optional[float] = None,
    ):
        self.unit_name = unit_name
        # 워커로 넘긴 뒤에는 읽기 전용
        self.config = MappingProxyType(dict(config))
        self.environment = environment
        self.timeout = timeout
        self._generate = generate
        self._lock = threading.Lock()
        self.state = InvocationState.CREATED
        self.outcome: Optional[GenerationOutcome] = None

    def _finish(self, outcome: GenerationOutcome) -> GenerationOutcome:
        self.outcome = outcome
        self.state = InvocationState.SUCCEEDED if outcome.ok else InvocationState.FAILED
        if not outcome.ok:
            log.error("Schema generation failed for %s: %s", self.unit_name, outcome.error)
        return outcome

    def run(self) -> GenerationOutcome:
        with self._lock:
            if self.state is not InvocationState.CREATED:
                raise RuntimeError(f"Invocation for {self.unit_name} already {self.state.value}")
            self.state = InvocationState.RUNNING

        try:
            self.environment.claim()
        except SchemagenError as e:
            return self._finish(GenerationOutcome.failed(e))

        worker = GeneratorThread(self.unit_name, self.environment, self.config, self._generate)
        try:
            worker.start()
            worker.join(self.timeout)
            if worker.is_alive():
                # 취소 수단은 없다: 데몬 스레드로 남겨 두고 실패로 보고
                return self._finish(GenerationOutcome.failed(GenerationFailure(
                    f"Schema generation for {self.unit_name} timed out after {self.timeout}s"
                )))
        finally:
            if not worker.is_alive():
                self.environment.close()

        if worker.error is not None:
            return self._finish(GenerationOutcome.failed(_as_failure(self.unit_name, worker.error)))
        scripts = worker.result
        if scripts is None:
            return self._finish(GenerationOutcome.failed(GenerationFailure(
                f"Schema generation for {self.unit_name} terminated without a result"
            )))
        return self._finish(GenerationOutcome.succeeded(scripts.create_script, scripts.drop_script))


def invoke_generation(
    unit_name: str,
    config: Mapping[str, Optional[str]],
    environment: ExecutionEnvironment,
    generate: GenerateFn = generate_schema,
    timeout: Optional[float] = None,
) -> GenerationOutcome:
    return GenerationInvocation(unit_name, config, environment, generate=generate, timeout=timeout).run()
