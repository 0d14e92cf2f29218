"""Choose which release asset to install."""

from typing import Optional

from story_launcher.constants import ASSET_SUFFIX_PREFERENCE

from .interfaces import Asset, Release


def select_asset(release: Release) -> Optional[Asset]:
    """
    Pick the archive to install from a release.

    Preference is by suffix, not by asset order: the first `.app.tar.gz`,
    otherwise the first `.app.zip`, otherwise the first `.dmg`.

    Returns:
        Optional[Asset]: The chosen asset, or None when nothing matches.
    """
    for suffix in ASSET_SUFFIX_PREFERENCE:
        for asset in release.assets:
            if asset.name.endswith(suffix):
                return asset
    return None
