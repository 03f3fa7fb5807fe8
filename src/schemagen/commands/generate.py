"""DDL 스크립트 생성: 설정 병합 -> 격리 환경 구성 -> 워커 스레드에서 provider 실행."""
from __future__ import annotations
from pathlib import Path
from typing import Mapping, Optional

from rich.console import Console
from rich.markup import escape

from schemagen.config import settings
from schemagen.environment import build_environment
from schemagen.errors import ConfigurationError, EnvironmentConstructionError
from schemagen.invoker import GenerateFn, invoke_generation
from schemagen.merger import merge_config, prepare_output_dir
from schemagen.model import ConnectionSettings, GenerationOutcome, OutputTarget, PersistenceUnitRef
from schemagen.provider import generate_schema

console = Console()


def _pick(value, default):
    return default if value is None else value


def run_generate(
    unit_name: str,
    input_dir: Path | str | None = None,
    classes_dir: Path | str | None = None,
    jdbc_driver: Optional[str] = None,
    jdbc_url: Optional[str] = None,
    jdbc_user: Optional[str] = None,
    jdbc_password: Optional[str] = None,
    output_dir: Path | str | None = None,
    create_filename: Optional[str] = None,
    drop_filename: Optional[str] = None,
    properties: Optional[Mapping[str, Optional[str]]] = None,
    dynamic: Optional[bool] = None,
    timeout: Optional[float] = None,
    generate: GenerateFn = generate_schema,
) -> GenerationOutcome:
    """
    영속성 유닛 하나의 create/drop 스크립트를 생성한다.
    지정하지 않은 값은 settings(SCHEMAGEN_* 환경변수)에서 채운다.

    설정 오류는 ConfigurationError 로 즉시 raise 하고(워커 생성 전),
    환경 구성/생성 실패는 GenerationOutcome.failed 로 반환한다.
    """
    search_root = _pick(input_dir, settings.input_dir)
    # Path("") 는 "." 이 되므로 변환 전에 막는다
    if search_root is None or not str(search_root).strip():
        raise ConfigurationError("No search root (input directory) defined")
    unit = PersistenceUnitRef(unit_name, Path(search_root))
    out = prepare_output_dir(_pick(output_dir, settings.output_dir))
    target = OutputTarget(
        out,
        create_filename=_pick(create_filename, settings.create_filename),
        drop_filename=_pick(drop_filename, settings.drop_filename),
    )
    connection = ConnectionSettings(
        driver=_pick(jdbc_driver, settings.jdbc_driver),
        url=_pick(jdbc_url, settings.jdbc_url),
        user=_pick(jdbc_user, settings.jdbc_user),
        password=_pick(jdbc_password, settings.jdbc_password),
    )
    config = merge_config(connection, target, properties)

    console.print(f"[bold]Persistence unit:[/bold] {unit.name}")
    console.print(f"[bold]Search root:[/bold] {unit.search_root}")
    try:
        environment = build_environment(
            unit.search_root,
            fallback=_pick(classes_dir, settings.classes_dir),
            dynamic=_pick(dynamic, settings.dynamic),
        )
    except EnvironmentConstructionError as e:
        console.print(f"[bold red]{e.kind}:[/bold red] {escape(str(e))}")
        return GenerationOutcome.failed(e)

    outcome = invoke_generation(
        unit.name,
        config,
        environment,
        generate=generate,
        timeout=_pick(timeout, settings.timeout),
    )
    if outcome.ok:
        if outcome.create_script:
            console.print(f"[bold green]Create:[/bold green] {outcome.create_script}")
        if outcome.drop_script:
            console.print(f"[bold green]Drop:[/bold green]   {outcome.drop_script}")
    return outcome
