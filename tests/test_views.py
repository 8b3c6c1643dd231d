"""views モジュールのテスト."""

from unittest.mock import MagicMock

import pytest

from gourmet.db import SQLiteFavoritesStore
from gourmet.models import ShopRecord
from gourmet.views import format_row, open_coupon, render_rows

SHOPS = [
    ShopRecord(
        id="J001000001",
        name="らーめん 一番",
        address="東京都新宿区西新宿1-1-1",
        logo_image="",
        coupon_url_pc="https://example.com/pc/1",
        coupon_url_sp="https://example.com/sp/1",
    ),
    ShopRecord(
        id="J001000002",
        name="麺屋 二代目",
        address="東京都渋谷区道玄坂2-2-2",
        logo_image="",
        coupon_url_pc="https://example.com/pc/2",
    ),
]


@pytest.fixture
def favorites():
    store = SQLiteFavoritesStore(":memory:")
    yield store
    store.close()


class TestRenderRows:
    """render_rows のテスト."""

    def test_flag_follows_store(self, favorites):
        favorites.add(SHOPS[1])

        rows = render_rows(SHOPS, favorites)

        assert [r.is_favorite for r in rows] == [False, True]

    def test_recomputed_on_each_render(self, favorites):
        """同じ ShopRecord でもストアの変更が次の表示に反映されること."""
        assert render_rows(SHOPS, favorites)[0].is_favorite is False

        favorites.toggle(SHOPS[0])
        assert render_rows(SHOPS, favorites)[0].is_favorite is True

        favorites.toggle(SHOPS[0])
        assert render_rows(SHOPS, favorites)[0].is_favorite is False


class TestFormatRow:
    """format_row のテスト."""

    def test_markers(self, favorites):
        favorites.add(SHOPS[0])
        rows = render_rows(SHOPS, favorites)

        assert format_row(0, rows[0]) == "  1. ★ らーめん 一番  東京都新宿区西新宿1-1-1"
        assert format_row(1, rows[1]).startswith("  2. ☆ 麺屋 二代目")


class TestOpenCoupon:
    """open_coupon のテスト."""

    def test_opens_mobile_url(self):
        opener = MagicMock(return_value=True)
        assert open_coupon(SHOPS[0], opener=opener) == "https://example.com/sp/1"
        opener.assert_called_once_with("https://example.com/sp/1")

    def test_falls_back_to_desktop_url(self):
        opener = MagicMock(return_value=True)
        assert open_coupon(SHOPS[1], opener=opener) == "https://example.com/pc/2"

    def test_no_url(self):
        shop = ShopRecord(id="J0", name="空", address="", logo_image="")
        opener = MagicMock()
        with pytest.raises(ValueError):
            open_coupon(shop, opener=opener)
        opener.assert_not_called()
