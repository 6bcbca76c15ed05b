from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Pipeline progress display with tqdm (TTY only).

One bar per import run, advanced once per pipeline stage
(parse -> lookup -> validate -> submit -> report). Disabled when stdout is not
a TTY.
"""

__all__ = [
    "PIPELINE_STAGES",
    "StageProgress",
    "is_tty_enabled",
]

PIPELINE_STAGES = ("parse", "lookup", "validate", "submit", "report")


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class StageProgress:
    """Progress bar over the pipeline stages of one import."""

    def __init__(self, description: str = "Importing", stages: tuple[str, ...] = PIPELINE_STAGES) -> None:
        self.description = description
        self.stages = stages
        self.completed: list[str] = []
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=len(stages),
                desc=description,
                unit="stage",
                leave=True,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start(self, stage: str) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({stage})")

    def finish(self, stage: str, **postfix: Any) -> None:
        self.completed.append(stage)
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if postfix:
                self.pbar.set_postfix(**postfix)
            self.pbar.set_description(self.description)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> StageProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
