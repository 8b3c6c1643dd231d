"""ホットペッパーグルメ店舗検索 — メインエントリーポイント.

コマンド:
  s <キーワード>  検索（キーワード省略で全件）
  r               再読み込み
  m               続きを表示
  f <番号>        お気に入り登録/解除
  o <番号>        クーポンページを開く
  l               お気に入り一覧
  q               終了
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from functools import partial

from gourmet.api import fetch_shops
from gourmet.config import LOG_DIR, PAGE_SIZE, load_api_key
from gourmet.db import FavoritesStore, create_favorites_store
from gourmet.exceptions import ConfigError
from gourmet.models import SearchState
from gourmet.pagination import SearchController
from gourmet.views import format_row, open_coupon, render_rows

logger = logging.getLogger(__name__)

PROMPT = "> "


def setup_logging() -> None:
    """ロギングの初期設定."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"gourmet_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def show_page(controller: SearchController, favorites: FavoritesStore, offset: int) -> int:
    """offset 行目から1ページ分を表示し、表示済みの行数を返す."""
    state = controller.state
    if state.status:
        print(state.status)
    rows = render_rows(state.shops[offset:offset + PAGE_SIZE], favorites)
    for i, row in enumerate(rows, start=offset):
        print(format_row(i, row))
    shown = offset + len(rows)
    if rows:
        # 末尾付近を表示したら裏で次のページを読み込む
        controller.on_row_rendered(shown - 1)
    elif not state.status:
        print("これ以上の店舗はありません")
    return shown


def show_favorites(favorites: FavoritesStore) -> None:
    items = favorites.list_all()
    if not items:
        print("お気に入りはありません")
        return
    for fav in items:
        print(f"★ {fav.name}  {fav.address}  {fav.coupon_url}")


def _pick(state: SearchState, arg: str):
    """番号 (1始まり) で表示中の店舗を取り出す."""
    try:
        index = int(arg) - 1
    except ValueError:
        print(f"番号を指定してください: {arg}")
        return None
    if not 0 <= index < len(state.shops):
        print(f"範囲外の番号です: {arg}")
        return None
    return state.shops[index]


def run() -> None:
    """メイン処理."""
    setup_logging()
    logger.info("=== 店舗検索 開始 ===")

    try:
        api_key = load_api_key()
        favorites = create_favorites_store()
    except ConfigError as e:
        logger.error("設定エラー: %s", e)
        sys.exit(1)

    controller = SearchController(partial(fetch_shops, api_key))
    shown = 0

    try:
        while True:
            try:
                line = input(PROMPT).strip()
            except EOFError:
                break
            command, _, arg = line.partition(" ")
            arg = arg.strip()

            if command == "q":
                break
            elif command in ("s", "r"):
                if command == "s":
                    controller.search(arg)
                else:
                    controller.refresh()
                controller.wait()
                shown = show_page(controller, favorites, 0)
            elif command == "m":
                state = controller.wait()
                if shown >= len(state.shops) and not state.end_of_results:
                    controller.load_more(append=True)
                    controller.wait()
                shown = show_page(controller, favorites, shown)
            elif command == "f":
                shop = _pick(controller.state, arg)
                if shop is not None:
                    added = favorites.toggle(shop)
                    print(f"{'★' if added else '☆'} {shop.name}")
            elif command == "o":
                shop = _pick(controller.state, arg)
                if shop is not None:
                    try:
                        open_coupon(shop)
                    except ValueError as e:
                        print(e)
            elif command == "l":
                show_favorites(favorites)
            elif command:
                print(__doc__)
    finally:
        controller.close()
        favorites.close()
        logger.info("=== 店舗検索 終了 ===")


if __name__ == "__main__":
    run()
