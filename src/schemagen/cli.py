"""
schemagen CLI.
- schemagen generate --unit NAME [-D key=value ...]: create/drop 스크립트 생성
- schemagen watch --unit NAME: 입력 디렉터리 변경 시 재생성
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from schemagen.commands.generate import run_generate
from schemagen.config import settings
from schemagen.errors import SchemagenError
from schemagen.model import GenerationOutcome

console = Console()

app = typer.Typer(
    name="schemagen",
    add_completion=False,
    help="JPA 영속성 유닛에서 DB 연결 없이 DDL(create/drop) 스크립트 생성",
)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def parse_properties(values: Optional[List[str]]) -> Dict[str, str]:
    props: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got '{item}'", param_hint="-D")
        props[key.strip()] = value
    return props


def _fail(error: SchemagenError) -> None:
    console.print(f"[bold red]{error.kind}:[/bold red] {escape(error.message)}")
    if error.cause is not None:
        console.print(f"[red]Caused by {type(error.cause).__name__}:[/red] {escape(str(error.cause))}")
    raise typer.Exit(code=1)


def _report(outcome: GenerationOutcome) -> None:
    if not outcome.ok:
        _fail(outcome.error)
    console.print("[bold green]DDL generation finished.[/bold green]")


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", "-l", help="로그 레벨 (DEBUG, INFO, ...)"),
):
    setup_logging(log_level)


@app.command("generate")
def generate(
    unit: str = typer.Option(..., "--unit", "-u", help="영속성 유닛 이름"),
    input_dir: Optional[Path] = typer.Option(None, help="META-INF/persistence.xml 이 있는 루트 (디렉터리 또는 jar/zip)"),
    classes_dir: Optional[Path] = typer.Option(None, help="추가 검색 위치 (컴파일 산출물)"),
    jdbc_driver: Optional[str] = typer.Option(None, help="JDBC 드라이버 클래스명 (dialect 선택용)"),
    jdbc_url: Optional[str] = typer.Option(None, help="JDBC URL (dialect 선택용, 연결하지 않음)"),
    jdbc_user: Optional[str] = typer.Option(None, help="JDBC 사용자"),
    jdbc_password: Optional[str] = typer.Option(None, help="JDBC 비밀번호"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="스크립트 출력 디렉터리"),
    create_filename: Optional[str] = typer.Option(None, help="create 스크립트 파일명"),
    drop_filename: Optional[str] = typer.Option(None, help="drop 스크립트 파일명"),
    define: Optional[List[str]] = typer.Option(None, "--define", "-D", help="추가 프로퍼티 key=value (반복 가능)"),
    dynamic: Optional[bool] = typer.Option(None, "--dynamic/--no-dynamic", help="소스 없는 엔티티 타입을 가상 타입으로 허용"),
    timeout: Optional[float] = typer.Option(None, help="생성 대기 시간 제한(초)"),
):
    """영속성 유닛 하나의 DDL 스크립트 생성."""
    props = parse_properties(define)
    try:
        outcome = run_generate(
            unit,
            input_dir=input_dir,
            classes_dir=classes_dir,
            jdbc_driver=jdbc_driver,
            jdbc_url=jdbc_url,
            jdbc_user=jdbc_user,
            jdbc_password=jdbc_password,
            output_dir=output_dir,
            create_filename=create_filename,
            drop_filename=drop_filename,
            properties=props or None,
            dynamic=dynamic,
            timeout=timeout,
        )
    except SchemagenError as e:
        _fail(e)
        return
    _report(outcome)


@app.command("watch")
def watch(
    unit: str = typer.Option(..., "--unit", "-u", help="영속성 유닛 이름"),
    input_dir: Optional[Path] = typer.Option(None, help="감시할 입력 디렉터리"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="스크립트 출력 디렉터리"),
    define: Optional[List[str]] = typer.Option(None, "--define", "-D", help="추가 프로퍼티 key=value (반복 가능)"),
):
    """입력 디렉터리의 .java/.xml 변경을 감시하며 재생성."""
    from schemagen.watch import watch_unit

    root = Path(input_dir or settings.input_dir).expanduser()
    if not root.is_dir():
        raise typer.BadParameter("watch 는 로컬 디렉터리에서만 사용하세요 (jar/zip 은 generate 로 실행)", param_hint="--input-dir")
    watch_unit(unit, root, output_dir=output_dir, properties=parse_properties(define) or None)
