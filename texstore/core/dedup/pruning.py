"""
Shared Texture Pruning
======================

Mark-and-sweep garbage collection for the shared texture directory. Run
once after a full generation batch, when every generated document is final:

- mark: scan generated documents for texture references and collect keys
- sweep: delete persisted textures whose key was not marked

Only the directory is touched, never a live store index.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Union

from texstore.core.config import StoreConfig
from texstore.core.dedup.layout import TextureLayout, shared_dir_for
from texstore.core.dedup.utils import list_files_recursive
from texstore.utils.logger import log_operation

logger = logging.getLogger(__name__)


@dataclass
class PruneResult:
    referenced_keys: Set[str] = field(default_factory=set)
    deleted: List[Path] = field(default_factory=list)
    kept: int = 0


def collect_referenced_keys(
    documents_dir: Union[str, Path],
    layout: TextureLayout,
    document_suffix: str = ".ui",
) -> Set[str]:
    """
    Returns every texture key referenced by the documents below documents_dir.
    """
    pattern = layout.reference_regex
    keys: Set[str] = set()
    for document in list_files_recursive(documents_dir):
        if not document.name.endswith(document_suffix):
            continue
        contents = document.read_text(encoding="utf-8", errors="replace")
        keys.update(match.group(1) for match in pattern.finditer(contents))
    return keys


@log_operation(operation="Prune")
def prune(
    documents_dir: Union[str, Path],
    persist_dir: Union[str, Path],
    config: Optional[StoreConfig] = None,
) -> PruneResult:
    """
    Deletes persisted textures in persist_dir that no document references.

    Files in persist_dir that do not follow the texture naming convention are
    left alone. A missing persist_dir is not an error.
    """
    config = config or StoreConfig()
    layout = TextureLayout.from_config(persist_dir, config)
    result = PruneResult()

    if not layout.shared_dir.is_dir():
        logger.debug(f"No shared texture directory at {layout.shared_dir}, nothing to prune")
        return result

    result.referenced_keys = collect_referenced_keys(documents_dir, layout, config.document_suffix)

    for path in sorted(layout.shared_dir.iterdir()):
        if not path.is_file():
            continue
        key = layout.key_from_file_name(path.name)
        if key is None:
            continue
        if key in result.referenced_keys:
            result.kept += 1
            continue
        path.unlink(missing_ok=True)
        result.deleted.append(path)

    if result.deleted:
        logger.info(f"Pruned {len(result.deleted)} unused shared textures ({result.kept} kept)")
    return result


def prune_unused_shared_textures(
    documents_dir: Union[str, Path],
    resources_root: Union[str, Path],
    config: Optional[StoreConfig] = None,
) -> PruneResult:
    """Prunes the standard shared directory of config.namespace under resources_root."""
    config = config or StoreConfig()
    return prune(documents_dir, shared_dir_for(resources_root, config.namespace, config.shared_dir_name), config)
