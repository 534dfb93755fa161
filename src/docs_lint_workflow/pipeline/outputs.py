"""Job outputs in the GitHub Actions `GITHUB_OUTPUT` file format."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"


def write_outputs(path: Path, outputs: Mapping[str, str]) -> None:
    """Append `name=value` lines to an outputs file."""

    lines: list[str] = []
    for name, value in outputs.items():
        if not name or "=" in name or "\n" in name:
            raise ValueError(f"Invalid output name: {name!r}")
        if "\n" in value:
            raise ValueError(f"Output {name!r} must be a single line")
        lines.append(f"{name}={value}\n")

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.writelines(lines)


def read_outputs(path: Path) -> dict[str, str]:
    """Read `name=value` lines back; later lines win."""

    if not path.exists():
        return {}
    outputs: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        name, sep, value = line.partition("=")
        if sep and name:
            outputs[name] = value
    return outputs


def export_outputs(environ: Mapping[str, str], outputs: Mapping[str, str]) -> Path | None:
    """Write outputs to the file named by GITHUB_OUTPUT, if the variable is set."""

    target = environ.get(GITHUB_OUTPUT_ENV, "").strip()
    if not target:
        return None
    path = Path(target)
    write_outputs(path, outputs)
    logger.debug("Exported job outputs", extra={"path": str(path), "outputs": dict(outputs)})
    return path
