"""
YAML reading for workspace documents.

Timestamps are left as plain strings so documents validate against schemas
that declare dates as `type: string`.
"""

from pathlib import Path
from typing import Any

import yaml

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class StringDateLoader(yaml.SafeLoader):
    """SafeLoader that does not resolve implicit timestamps."""


StringDateLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_yaml(text: str) -> Any:
    """Parse YAML text. Raises yaml.YAMLError on malformed input."""
    return yaml.load(text, Loader=StringDateLoader)


def read_yaml_file(path: Path) -> Any:
    """Read and parse a YAML file."""
    return load_yaml(path.read_text(encoding="utf-8"))
