from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--seed", "7"]


@dataclass
class Expected:
    path: Path


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return [sys.executable, "nebula_render.py", *self.args]


def _simple(name: str, filename: str, *extra: str) -> Example:
    target = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=[*BASE_ARGS, *extra, "--output", str(target)],
        expected=[Expected(target)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _simple("type", "julia.png", "--type", "julia", "--offset-x", "0", "--zoom", "250"),
    _simple("zoom", "close-up.png", "--zoom", "1200", "--offset-x", "-0.745", "--offset-y", "0.11"),
    _simple("offset", "seahorse-valley.png", "--offset-x", "-0.75", "--offset-y", "0.1"),
    _simple("max-iterations", "high-iterations.png", "--max-iterations", "400"),
    _simple("julia-constant", "dendrite.png", "--type", "julia", "--offset-x", "0", "--cx", "0", "--cy", "1"),
    _simple("base-hue", "magenta.png", "--base-hue", "300"),
    _simple("saturation", "muted.png", "--saturation", "20"),
    _simple("lightness", "bright.png", "--lightness", "55"),
    _simple("noise-band", "wide-clouds.png", "--min-noise", "0.05", "--max-noise", "0.95"),
    _simple("fog-density", "dense.png", "--fog-density", "0.8"),
    _simple("fog-size", "fine-fog.png", "--fog-size", "0.04"),
    _simple("fog-layers", "single-layer.png", "--fog-layers", "1"),
    _simple("star-clarity", "sharp-stars.png", "--star-clarity", "2.0"),
    _simple("fog-black-areas", "fogged.png", "--fog-black-areas"),
    _simple("format", "nebula.webp", "--format", "webp"),
    _simple("verbose", "diagnostic.png", "--verbose"),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
