"""Application and request information used as SLO generation metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

VERSION = "dev"


class Mode(str, Enum):
    """Execution mode of the generator."""

    TEST = "test"
    CLI_GEN_PROMETHEUS = "cli-gen-prom"
    CLI_GEN_KUBERNETES = "cli-gen-k8s"
    CLI_GEN_OPENSLO = "cli-gen-openslo"
    CONTROLLER_GEN_KUBERNETES = "ctrl-gen-k8s"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Info:
    """Information about the application and the spec being processed."""

    version: str = VERSION
    mode: Mode | str = ""
    spec: str = ""