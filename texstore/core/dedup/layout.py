"""
Shared Texture Layout
=====================

Naming conventions for persisted textures and the references generated
documents carry:

    file on disk:  <shared_dir>/<prefix><sha256>@2x.<ext>
    reference:     <namespace>/<shared_dir_name>/<prefix><sha256>.<ext>
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from texstore.core.config import HIRES_SUFFIX, RESOURCE_PATH_SEGMENTS, StoreConfig


def shared_dir_for(resources_root: Union[str, Path], namespace: str, shared_dir_name: str = "Shared") -> Path:
    """Standard location of the shared texture directory for a namespace."""
    return Path(resources_root).joinpath(*RESOURCE_PATH_SEGMENTS, namespace, shared_dir_name)


@dataclass(frozen=True)
class TextureLayout:
    shared_dir: Path
    namespace: str
    shared_dir_name: str
    key_prefix: str
    extension: str

    @classmethod
    def from_config(cls, shared_dir: Union[str, Path], config: StoreConfig) -> "TextureLayout":
        return cls(
            shared_dir=Path(shared_dir),
            namespace=config.namespace,
            shared_dir_name=config.shared_dir_name,
            key_prefix=config.key_prefix,
            extension=config.extension,
        )

    @property
    def _key_pattern(self) -> str:
        return f"{re.escape(self.key_prefix)}[0-9a-f]{{64}}"

    @property
    def file_name_regex(self) -> "re.Pattern[str]":
        return re.compile(f"^({self._key_pattern}){re.escape(HIRES_SUFFIX)}\\.{re.escape(self.extension)}$")

    @property
    def reference_regex(self) -> "re.Pattern[str]":
        """Matches references in document text; group 1 is the key."""
        return re.compile(
            f"{re.escape(self.namespace)}/{re.escape(self.shared_dir_name)}/"
            f"({self._key_pattern})\\.{re.escape(self.extension)}"
        )

    def key_for_digest(self, digest: str) -> str:
        return f"{self.key_prefix}{digest}"

    def key_from_file_name(self, file_name: str) -> Optional[str]:
        """Returns the key embedded in a persisted file name, None if it does not follow the convention."""
        match = self.file_name_regex.match(file_name)
        return match.group(1) if match else None

    def file_name_for_key(self, key: str) -> str:
        return f"{key}{HIRES_SUFFIX}.{self.extension}"

    def file_path_for_key(self, key: str) -> Path:
        return self.shared_dir / self.file_name_for_key(key)

    def reference_path_for_key(self, key: str) -> str:
        return f"{self.namespace}/{self.shared_dir_name}/{key}.{self.extension}"
