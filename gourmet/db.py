"""お気に入り店舗の保存モジュール.

既定はローカルの SQLite ファイル。GOURMET_FAVORITES_BACKEND=supabase の場合は
Supabase の gourmet スキーマ favorite_shops テーブルに保存する。

登録済みの店舗を add した場合、未登録の店舗を remove した場合は例外を送出する。
状態を確認してから切り替える場合は toggle を使う。
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

from supabase import create_client

from gourmet.config import DB_PATH, FAVORITES_BACKEND, SUPABASE_SECRET_KEY, SUPABASE_URL
from gourmet.exceptions import ConfigError, FavoriteAlreadyExistsError, FavoriteNotFoundError
from gourmet.models import FavoriteShop, ShopRecord

logger = logging.getLogger(__name__)

TABLE_NAME = "favorite_shops"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    logo_image_url TEXT NOT NULL,
    address TEXT NOT NULL,
    coupon_url TEXT NOT NULL
)
"""


class FavoritesStore:
    """お気に入りストアの共通インターフェース."""

    def is_favorite(self, shop_id: str) -> bool:
        return self.get(shop_id) is not None

    def get(self, shop_id: str) -> FavoriteShop | None:
        raise NotImplementedError

    def list_all(self) -> list[FavoriteShop]:
        raise NotImplementedError

    def add(self, shop: ShopRecord) -> FavoriteShop:
        raise NotImplementedError

    def remove(self, shop_id: str) -> None:
        raise NotImplementedError

    def toggle(self, shop: ShopRecord) -> bool:
        """お気に入り状態を反転する.

        Returns:
            反転後にお気に入りなら True
        """
        if self.is_favorite(shop.id):
            logger.info("「%s」をお気に入りから削除します", shop.name)
            self.remove(shop.id)
            return False
        logger.info("「%s」をお気に入りに追加します", shop.name)
        self.add(shop)
        return True

    def close(self) -> None:
        pass


class SQLiteFavoritesStore(FavoritesStore):
    """SQLite ファイルに保存するお気に入りストア."""

    def __init__(self, path: Path | str = DB_PATH) -> None:
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        with self._lock, self._conn:
            self._conn.execute(_SCHEMA)

    def get(self, shop_id: str) -> FavoriteShop | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT * FROM {TABLE_NAME} WHERE id = ?", (shop_id,)
            ).fetchone()
        return FavoriteShop.from_row(row) if row else None

    def list_all(self) -> list[FavoriteShop]:
        with self._lock:
            rows = self._conn.execute(f"SELECT * FROM {TABLE_NAME} ORDER BY rowid").fetchall()
        return [FavoriteShop.from_row(r) for r in rows]

    def add(self, shop: ShopRecord) -> FavoriteShop:
        favorite = FavoriteShop.from_shop(shop)
        row = favorite.to_row()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    f"INSERT INTO {TABLE_NAME} (id, name, logo_image_url, address, coupon_url) "
                    "VALUES (:id, :name, :logo_image_url, :address, :coupon_url)",
                    row,
                )
        except sqlite3.IntegrityError as e:
            raise FavoriteAlreadyExistsError(shop.id) from e
        logger.info("favorite_shops に追加: id=%s", shop.id)
        return favorite

    def remove(self, shop_id: str) -> None:
        with self._lock, self._conn:
            cur = self._conn.execute(f"DELETE FROM {TABLE_NAME} WHERE id = ?", (shop_id,))
        if cur.rowcount == 0:
            raise FavoriteNotFoundError(shop_id)
        logger.info("favorite_shops から削除: id=%s", shop_id)

    def close(self) -> None:
        self._conn.close()


class SupabaseFavoritesStore(FavoritesStore):
    """Supabase の gourmet スキーマに保存するお気に入りストア."""

    def __init__(self, client) -> None:
        self._client = client

    def _table(self):
        """gourmet スキーマの favorite_shops テーブルを参照する."""
        return self._client.schema("gourmet").table(TABLE_NAME)

    def get(self, shop_id: str) -> FavoriteShop | None:
        resp = self._table().select("*").eq("id", shop_id).limit(1).execute()
        if not resp.data:
            return None
        return FavoriteShop.from_row(resp.data[0])

    def list_all(self) -> list[FavoriteShop]:
        resp = self._table().select("*").execute()
        return [FavoriteShop.from_row(r) for r in resp.data]

    def add(self, shop: ShopRecord) -> FavoriteShop:
        if self.is_favorite(shop.id):
            raise FavoriteAlreadyExistsError(shop.id)
        favorite = FavoriteShop.from_shop(shop)
        self._table().insert(favorite.to_row()).execute()
        logger.info("favorite_shops に追加: id=%s", shop.id)
        return favorite

    def remove(self, shop_id: str) -> None:
        resp = self._table().delete().eq("id", shop_id).execute()
        if not resp.data:
            raise FavoriteNotFoundError(shop_id)
        logger.info("favorite_shops から削除: id=%s", shop_id)


def create_favorites_store(backend: str = FAVORITES_BACKEND) -> FavoritesStore:
    """設定に応じたお気に入りストアを生成する."""
    if backend == "sqlite":
        return SQLiteFavoritesStore(DB_PATH)
    if backend == "supabase":
        if not SUPABASE_URL or not SUPABASE_SECRET_KEY:
            raise ConfigError("SUPABASE_URL と SUPABASE_SECRET_KEY を設定してください")
        return SupabaseFavoritesStore(create_client(SUPABASE_URL, SUPABASE_SECRET_KEY))
    raise ConfigError(f"不明なお気に入り保存先: {backend}")
