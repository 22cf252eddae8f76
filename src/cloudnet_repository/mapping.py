"""Selection and renaming of upstream artifacts."""

from collections.abc import Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from posixpath import basename

from cloudnet_repository.config import ArtifactFileMapping, ParentVersion
from cloudnet_repository.errors import ArtifactMissingError
from cloudnet_repository.models.release import ReleaseAsset


@dataclass(frozen=True)
class MappedAsset:
    asset: ReleaseAsset
    mapping: ArtifactFileMapping


def find_mapping(
    mappings: Sequence[ArtifactFileMapping], artifact_path: str
) -> ArtifactFileMapping | None:
    """Return the first mapping whose pattern matches the path or its base name."""
    name = basename(artifact_path)
    for mapping in mappings:
        if fnmatchcase(artifact_path, mapping.pattern) or fnmatchcase(name, mapping.pattern):
            return mapping
    return None


def select_assets(parent: ParentVersion, assets: Sequence[ReleaseAsset]) -> list[MappedAsset]:
    """Apply the parent's mapping table to upstream assets.

    Unmapped assets are dropped. Each target is filled at most once, by the
    first asset that maps to it.

    Raises:
        ArtifactMissingError: If a required mapping matched nothing or no
            asset was selected at all
    """
    selected: list[MappedAsset] = []
    used_targets: set[str] = set()
    for asset in assets:
        mapping = find_mapping(parent.mappings, asset.name)
        if mapping is None or mapping.target in used_targets:
            continue
        used_targets.add(mapping.target)
        selected.append(MappedAsset(asset=asset, mapping=mapping))

    for mapping in parent.mappings:
        if mapping.required and mapping.target not in used_targets:
            raise ArtifactMissingError(parent.name, mapping.pattern)
    if not selected:
        raise ArtifactMissingError(parent.name, "any mapped artifact")
    return selected
