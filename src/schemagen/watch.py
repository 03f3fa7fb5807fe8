from __future__ import annotations
import logging
import time
from pathlib import Path
from typing import Mapping, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from schemagen.commands.generate import run_generate
from schemagen.errors import SchemagenError

log = logging.getLogger(__name__)

WATCHED_SUFFIXES = {".java", ".xml"}


class Handler(FileSystemEventHandler):
    def __init__(
        self,
        unit_name: str,
        input_dir: Path,
        output_dir: Path | None = None,
        properties: Optional[Mapping[str, str]] = None,
        debounce: float = 0.8,
    ):
        self.unit_name = unit_name
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.properties = properties
        self.debounce = debounce
        self._last = 0.0

    def regenerate(self) -> None:
        try:
            outcome = run_generate(
                self.unit_name,
                input_dir=self.input_dir,
                output_dir=self.output_dir,
                properties=self.properties,
            )
        except SchemagenError as e:
            log.error("%s: %s", e.kind, e)
            return
        if not outcome.ok:
            log.error("%s: %s", outcome.error.kind, outcome.error)

    def on_any_event(self, event):
        if event.is_directory:
            return
        p = Path(event.src_path)
        if p.suffix.lower() not in WATCHED_SUFFIXES:
            return

        # 저장 한 번에 이벤트가 여러 개 온다(간단 debounce)
        now = time.time()
        if now - self._last < self.debounce:
            return
        self._last = now

        log.info("Change detected in %s, regenerating", p)
        self.regenerate()


def watch_unit(
    unit_name: str,
    input_dir: Path,
    output_dir: Path | None = None,
    properties: Optional[Mapping[str, str]] = None,
) -> None:
    handler = Handler(unit_name, input_dir, output_dir, properties)
    # 시작 시 한 번 생성
    handler.regenerate()

    obs = Observer()
    obs.schedule(handler, str(input_dir), recursive=True)
    obs.start()
    log.info("Watching %s for changes (Ctrl+C to stop)", input_dir)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        obs.stop()
        obs.join()
