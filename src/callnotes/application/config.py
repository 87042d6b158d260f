"""Run configuration for note generation."""

import enum
import os
from dataclasses import dataclass

DEFAULT_OUT_DIRNAME = "_obsidian"


class Mode(enum.Enum):
    """Note granularity. Exactly one is selected per run."""

    PER_FILE = "per-file"
    PER_UNIT = "per-method"


def default_out_dir():
    return os.path.join(os.getcwd(), DEFAULT_OUT_DIRNAME)


@dataclass
class GeneratorConfig:
    """
    Settings for one generation run.

    Attributes:
        project_path: Workspace to analyze.
        mode: Per-file or per-unit notes.
        out_dir: Destination directory for the notes.
        workers: Threads used for per-document extraction.
        guess_receivers: Let the Python resolver treat calls on receivers of
            unknown type as ambiguous calls to same-named project methods.
        verbose: Print phase timings and memory usage.
        debug: Enable debug logging.
    """

    project_path: str
    mode: Mode
    out_dir: str = ""
    workers: int = 1
    guess_receivers: bool = False
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        if not self.out_dir:
            self.out_dir = default_out_dir()
        if self.workers < 1:
            raise ValueError("workers must be at least 1, got %d" % self.workers)

    @classmethod
    def from_args(cls, args) -> "GeneratorConfig":
        return cls(
            project_path=args.project,
            mode=Mode.PER_FILE if args.per_file else Mode.PER_UNIT,
            out_dir=args.out,
            workers=args.workers,
            guess_receivers=args.guess_receivers,
            verbose=args.verbose,
            debug=args.debug,
        )
