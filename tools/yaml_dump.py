"""YAML output for escrow vectors.

Keys, account data and wire encodings are written as lowercase hex strings;
error codes and escrow status tags are written as plain integers.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path

import yaml


class VectorDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=None)


def _bytes_representer(dumper: yaml.SafeDumper, data: bytes) -> yaml.ScalarNode:
    return _str_representer(dumper, data.hex())


def _int_enum_representer(dumper: yaml.SafeDumper, data: IntEnum) -> yaml.ScalarNode:
    return dumper.represent_int(int(data))


VectorDumper.add_representer(str, _str_representer)
VectorDumper.add_representer(bytes, _bytes_representer)
VectorDumper.add_multi_representer(IntEnum, _int_enum_representer)


def dump_yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=VectorDumper, sort_keys=False, width=4096)


def write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_yaml(data))
