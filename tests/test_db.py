"""db モジュールのテスト."""

from unittest.mock import MagicMock, patch

import pytest

from gourmet.db import SQLiteFavoritesStore, SupabaseFavoritesStore, create_favorites_store
from gourmet.exceptions import ConfigError, FavoriteAlreadyExistsError, FavoriteNotFoundError
from gourmet.models import ShopRecord

SHOP = ShopRecord(
    id="J001000002",
    name="麺屋 二代目",
    address="東京都渋谷区道玄坂2-2-2",
    logo_image="https://imgfp.hotp.jp/IMGH/00/02/P000000002/P000000002.jpg",
    coupon_url_pc="https://www.hotpepper.jp/strJ001000002/map/",
    coupon_url_sp="",
)


@pytest.fixture
def store(tmp_path):
    s = SQLiteFavoritesStore(tmp_path / "favorites.sqlite3")
    yield s
    s.close()


class TestSQLiteFavoritesStore:
    """SQLiteFavoritesStore のテスト."""

    def test_add_then_is_favorite(self, store):
        assert store.is_favorite(SHOP.id) is False
        store.add(SHOP)
        assert store.is_favorite(SHOP.id) is True

    def test_remove(self, store):
        store.add(SHOP)
        store.remove(SHOP.id)
        assert store.is_favorite(SHOP.id) is False

    def test_desktop_coupon_when_mobile_empty(self, store):
        store.add(SHOP)
        favorite = store.get(SHOP.id)
        assert favorite.coupon_url == "https://www.hotpepper.jp/strJ001000002/map/"
        assert favorite.logo_image_url == SHOP.logo_image
        assert favorite.name == SHOP.name

    def test_mobile_coupon_preferred(self, store):
        shop = ShopRecord(
            id="J001000001",
            name="らーめん 一番",
            address="東京都新宿区",
            logo_image="",
            coupon_url_pc="https://example.com/pc",
            coupon_url_sp="https://example.com/sp",
        )
        store.add(shop)
        assert store.get(shop.id).coupon_url == "https://example.com/sp"

    def test_duplicate_add(self, store):
        store.add(SHOP)
        with pytest.raises(FavoriteAlreadyExistsError):
            store.add(SHOP)
        assert len(store.list_all()) == 1

    def test_remove_missing(self, store):
        with pytest.raises(FavoriteNotFoundError):
            store.remove("J999999999")

    def test_toggle(self, store):
        assert store.toggle(SHOP) is True
        assert store.is_favorite(SHOP.id) is True
        assert store.toggle(SHOP) is False
        assert store.is_favorite(SHOP.id) is False

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "favorites.sqlite3"
        first = SQLiteFavoritesStore(path)
        first.add(SHOP)
        first.close()

        second = SQLiteFavoritesStore(path)
        assert [f.id for f in second.list_all()] == [SHOP.id]
        second.close()

    def test_in_memory(self):
        store = SQLiteFavoritesStore(":memory:")
        store.add(SHOP)
        assert store.is_favorite(SHOP.id)
        store.close()


def _client_with(data):
    """select/insert/delete チェーンを受け付ける Supabase クライアントのモック."""
    client = MagicMock()
    chain = MagicMock()
    client.schema.return_value.table.return_value = chain
    for name in ("select", "insert", "delete", "eq", "limit"):
        getattr(chain, name).return_value = chain
    chain.execute.return_value = MagicMock(data=data)
    return client, chain


class TestSupabaseFavoritesStore:
    """SupabaseFavoritesStore のモックテスト."""

    def test_add(self):
        client, chain = _client_with([])
        store = SupabaseFavoritesStore(client)

        store.add(SHOP)

        client.schema.assert_called_with("gourmet")
        client.schema.return_value.table.assert_called_with("favorite_shops")
        chain.insert.assert_called_once_with({
            "id": SHOP.id,
            "name": SHOP.name,
            "logo_image_url": SHOP.logo_image,
            "address": SHOP.address,
            "coupon_url": "https://www.hotpepper.jp/strJ001000002/map/",
        })

    def test_add_duplicate(self):
        row = {
            "id": SHOP.id,
            "name": SHOP.name,
            "logo_image_url": SHOP.logo_image,
            "address": SHOP.address,
            "coupon_url": SHOP.coupon_url,
        }
        client, chain = _client_with([row])
        store = SupabaseFavoritesStore(client)

        with pytest.raises(FavoriteAlreadyExistsError):
            store.add(SHOP)
        chain.insert.assert_not_called()

    def test_remove_missing(self):
        client, chain = _client_with([])
        store = SupabaseFavoritesStore(client)

        with pytest.raises(FavoriteNotFoundError):
            store.remove(SHOP.id)
        chain.eq.assert_called_with("id", SHOP.id)


class TestCreateFavoritesStore:
    """create_favorites_store のテスト."""

    def test_sqlite(self, tmp_path):
        with patch("gourmet.db.DB_PATH", tmp_path / "fav.sqlite3"):
            store = create_favorites_store("sqlite")
        assert isinstance(store, SQLiteFavoritesStore)
        store.close()

    @patch("gourmet.db.SUPABASE_URL", None)
    def test_supabase_without_credentials(self):
        with pytest.raises(ConfigError):
            create_favorites_store("supabase")

    @patch("gourmet.db.create_client")
    @patch("gourmet.db.SUPABASE_SECRET_KEY", "secret")
    @patch("gourmet.db.SUPABASE_URL", "https://example.supabase.co")
    def test_supabase(self, mock_create_client):
        store = create_favorites_store("supabase")
        assert isinstance(store, SupabaseFavoritesStore)
        mock_create_client.assert_called_once_with("https://example.supabase.co", "secret")

    def test_unknown_backend(self):
        with pytest.raises(ConfigError):
            create_favorites_store("realm")
