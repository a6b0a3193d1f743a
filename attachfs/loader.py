"""Build filesystem trees from YAML or JSON descriptions.

Format:

    ```yaml
    data:                          # mapping: a directory
      notes:                       # list: the versions of a file
        - "first draft"            # scalar: text data
        - {data: {a: 1}}           # data: a VFile
        - null                     # a hole
      table:
        "@versions":               # mapping with @versions: a file with extras
          - {url: "https://example.com/t.csv", name: t.csv}   # url: a RemoteFile
        "@labels": {release: 1}    # label -> version number
        "@metadata": {owner: ops}
    ```
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from attachfs.config import HttpConfig
from attachfs.remote import RemoteFile
from attachfs.vfile import VFile
from attachfs.vfs.base import DirectoryNode, SlotSequence
from attachfs.vfs.versions import get_version, is_label, set_version

logger = logging.getLogger(__name__)

VERSIONS_KEY = "@versions"
LABELS_KEY = "@labels"
METADATA_KEY = "@metadata"


def load_tree(path: Union[str, Path], http: Optional[HttpConfig] = None) -> DirectoryNode:
    """Load a tree description from a YAML or JSON file.

    Args:
        path: File to read
        http: HTTP settings for remote files

    Returns:
        The root directory
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    logger.debug(f"Loaded tree description from {path}")
    return tree_from_literal(data or {}, http=http)


def tree_from_literal(data: Dict[str, Any], http: Optional[HttpConfig] = None) -> DirectoryNode:
    """Build a directory from a parsed description."""
    if not isinstance(data, dict):
        raise ValueError(f"A tree description must be a mapping, got {type(data).__name__}")
    tree = DirectoryNode()
    for name, value in data.items():
        name = str(name)
        if isinstance(value, list):
            tree.children[name] = _sequence(name, value, None, None, http)
        elif isinstance(value, dict) and VERSIONS_KEY in value:
            tree.children[name] = _sequence(
                name,
                value.get(VERSIONS_KEY) or [],
                value.get(LABELS_KEY),
                value.get(METADATA_KEY),
                http,
            )
        elif isinstance(value, dict):
            tree.children[name] = tree_from_literal(value, http=http)
        else:
            raise ValueError(f"Entry {name!r} must be a directory or a list of versions")
    return tree


def _sequence(
    name: str,
    entries: List[Any],
    labels: Optional[Dict[str, Any]],
    metadata: Optional[Dict[str, Any]],
    http: Optional[HttpConfig],
) -> SlotSequence:
    files = SlotSequence(
        [None if item is None else _file(name, item, http) for item in entries],
        metadata={"name": name, **metadata} if metadata else None,
    )
    for label, version in (labels or {}).items():
        if not is_label(str(label)):
            raise ValueError(f"{label!r} is not a usable label for {name!r}")
        target = get_version(files, version)
        if target is None:
            raise ValueError(f"Label {label!r} of {name!r} refers to missing version {version!r}")
        set_version(files, str(label), target)
    return files


def _file(name: str, item: Any, http: Optional[HttpConfig]) -> Any:
    if not isinstance(item, dict):
        return VFile(name, str(item))
    file_name = item.get("name", name)
    metadata = dict(item.get("metadata") or {})
    if item.get("content_type"):
        metadata["content_type"] = item["content_type"]
    if "url" in item:
        return RemoteFile(file_name, item["url"], metadata=metadata, http=http)
    if "data" in item:
        return VFile(file_name, item["data"], metadata)
    raise ValueError(f"Version of {name!r} needs either 'url' or 'data'")
