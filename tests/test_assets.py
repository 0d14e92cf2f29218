"""Tests for release asset selection."""

import pytest

from story_launcher.install.assets import select_asset
from tests.launcher_test_utils import make_release

pytestmark = [pytest.mark.unit]


class TestSelectAsset:
    """Tests for select_asset."""

    def test_tar_gz_preferred_over_dmg(self):
        release = make_release("v2.3.0", "tool.dmg", "tool.app.tar.gz")

        assert select_asset(release).name == "tool.app.tar.gz"

    def test_zip_preferred_over_dmg(self):
        release = make_release("v2.3.0", "tool.dmg", "tool.app.zip")

        assert select_asset(release).name == "tool.app.zip"

    def test_tar_gz_preferred_over_zip(self):
        release = make_release("v2.3.0", "tool.app.zip", "tool.app.tar.gz")

        assert select_asset(release).name == "tool.app.tar.gz"

    def test_dmg_used_when_nothing_else(self):
        release = make_release("v2.3.0", "notes.txt", "tool.dmg")

        asset = select_asset(release)

        assert asset.name == "tool.dmg"
        assert asset.download_url == "https://example.com/download/tool.dmg"

    def test_first_match_of_a_suffix_wins(self):
        release = make_release("v2.3.0", "a.app.tar.gz", "b.app.tar.gz")

        assert select_asset(release).name == "a.app.tar.gz"

    @pytest.mark.parametrize(
        "names",
        [
            (),
            ("tool.tar.gz", "tool.zip"),
            ("tool.exe", "tool.AppImage"),
            ("tool.APP.TAR.GZ", "tool.DMG"),
            ("tool.dmg.sha256",),
        ],
    )
    def test_no_compatible_asset(self, names):
        assert select_asset(make_release("v2.3.0", *names)) is None
