"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ShopRecord:
    """検索結果の1店舗を表す.

    お気に入り状態は持たない。表示時に FavoritesStore を参照して決める。
    """

    id: str  # 店舗ID (例: J001234567)
    name: str
    address: str
    logo_image: str  # ロゴ画像URL
    coupon_url_pc: str = ""  # PC向けクーポンURL（空の場合あり）
    coupon_url_sp: str = ""  # スマホ向けクーポンURL（空の場合あり）

    @property
    def coupon_url(self) -> str:
        """スマホ向けが空でなければスマホ向け、空なら PC 向けを返す."""
        return self.coupon_url_sp or self.coupon_url_pc

    @classmethod
    def from_api(cls, entry: dict) -> ShopRecord:
        """API レスポンスの shop 要素1件から生成する.

        Raises:
            KeyError: id が無い場合
        """
        coupon_urls = entry.get("coupon_urls") or {}
        return cls(
            id=str(entry["id"]),
            name=entry.get("name", ""),
            address=entry.get("address", ""),
            logo_image=entry.get("logo_image", ""),
            coupon_url_pc=coupon_urls.get("pc", "") or "",
            coupon_url_sp=coupon_urls.get("sp", "") or "",
        )


@dataclass
class FavoriteShop:
    """ローカルに保存するお気に入り店舗."""

    id: str  # 主キー（ShopRecord.id と同じ）
    name: str
    logo_image_url: str
    address: str
    coupon_url: str  # 登録時に解決済みのクーポンURL

    @classmethod
    def from_shop(cls, shop: ShopRecord) -> FavoriteShop:
        return cls(
            id=shop.id,
            name=shop.name,
            logo_image_url=shop.logo_image,
            address=shop.address,
            coupon_url=shop.coupon_url,
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "logo_image_url": self.logo_image_url,
            "address": self.address,
            "coupon_url": self.coupon_url,
        }

    @classmethod
    def from_row(cls, row) -> FavoriteShop:
        return cls(
            id=row["id"],
            name=row["name"],
            logo_image_url=row["logo_image_url"],
            address=row["address"],
            coupon_url=row["coupon_url"],
        )


@dataclass(frozen=True)
class SearchState:
    """検索画面1つ分の状態."""

    keyword: str = ""
    shops: tuple[ShopRecord, ...] = ()
    in_flight: bool = False  # リクエスト送信中
    end_of_results: bool = False  # 最後まで読み込み済み
    status: str = ""  # 利用者向けメッセージ
    generation: int = 0  # 応答が最新リクエストのものか判定する番号
