"""例外定義."""


class GourmetError(Exception):
    """パッケージ共通の基底例外."""


class ConfigError(GourmetError):
    """API キーなどの設定不備. 起動時に致命的エラーとして扱う."""


class FetchError(GourmetError):
    """店舗検索 API の取得・デコード失敗."""


class FavoritesError(GourmetError):
    """お気に入りストアの整合性エラー."""


class FavoriteAlreadyExistsError(FavoritesError):
    def __init__(self, shop_id: str) -> None:
        super().__init__(f"既にお気に入りに登録されています: {shop_id}")
        self.shop_id = shop_id


class FavoriteNotFoundError(FavoritesError):
    def __init__(self, shop_id: str) -> None:
        super().__init__(f"お気に入りに登録されていません: {shop_id}")
        self.shop_id = shop_id
