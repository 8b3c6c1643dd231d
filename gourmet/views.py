"""表示用ヘルパー."""

from __future__ import annotations

import logging
import webbrowser
from dataclasses import dataclass
from typing import Callable, Iterable

from gourmet.db import FavoritesStore
from gourmet.models import ShopRecord

logger = logging.getLogger(__name__)


@dataclass
class ShopRow:
    """一覧の1行."""

    shop: ShopRecord
    is_favorite: bool


def render_rows(shops: Iterable[ShopRecord], favorites: FavoritesStore) -> list[ShopRow]:
    """お気に入り状態を表示のたびにストアから引いて行を作る."""
    return [ShopRow(shop=s, is_favorite=favorites.is_favorite(s.id)) for s in shops]


def format_row(index: int, row: ShopRow) -> str:
    star = "★" if row.is_favorite else "☆"
    return f"{index + 1:>3}. {star} {row.shop.name}  {row.shop.address}"


def open_coupon(shop: ShopRecord, opener: Callable[[str], bool] = webbrowser.open) -> str:
    """クーポンページをブラウザで開く.

    Returns:
        開いた URL
    """
    url = shop.coupon_url
    if not url:
        raise ValueError(f"クーポンURLがありません: {shop.name}")
    logger.info("クーポンを開きます: %s", url)
    opener(url)
    return url
