"""File I/O utilities: atomic YAML writes and audio payloads."""

from __future__ import annotations

import base64
import tempfile
from pathlib import Path

from ruamel.yaml import YAML

_yaml = YAML()
_yaml.preserve_quotes = True
_yaml.default_flow_style = False


def read_yaml(path: Path | str) -> dict:
    """Read a YAML file and return as dict."""
    path = Path(path)
    with open(path) as f:
        return dict(_yaml.load(f) or {})


def write_yaml(path: Path | str, data: dict) -> None:
    """Write a dict to a YAML file atomically (write to temp, then rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        suffix=path.suffix,
        delete=False,
    ) as tmp:
        _yaml.dump(data, tmp)
        tmp_path = Path(tmp.name)

    tmp_path.replace(path)


def file_to_base64(path: Path | str) -> str:
    """Read a binary file and return its base64 text."""
    with open(path, "rb") as f:
        return base64.b64encode(f.read()).decode("ascii")
