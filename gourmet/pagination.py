"""検索結果のページング制御.

状態遷移は純粋関数 (begin_fetch / apply_success / apply_failure) で定義し、
SearchController がそれをスレッドプール上の API 呼び出しと結びつける。

  Idle -> Fetching -> Idle (成功: 結果を置換 or 追加)
  Idle -> Fetching -> Idle (失敗: 結果を空にして end_of_results)

新規検索は送信中のリクエストを打ち切る。打ち切られた応答は generation が
一致しないため破棄される。
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Callable, Sequence

from gourmet.config import PAGE_SIZE, PREFETCH_THRESHOLD
from gourmet.exceptions import FetchError
from gourmet.models import SearchState, ShopRecord

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "検索結果が存在しません"

Fetcher = Callable[[str, int, int], Sequence[ShopRecord]]
Subscriber = Callable[[SearchState], None]


def begin_fetch(state: SearchState, append: bool) -> tuple[SearchState, int] | None:
    """読み込み開始. 開始できない場合は None.

    Returns:
        (新しい状態, 開始位置) のタプル
    """
    if append and state.in_flight:
        return None
    if append and state.end_of_results:
        return None

    start = len(state.shops) + 1 if append else 1
    new_state = replace(state, in_flight=True, generation=state.generation + 1)
    return new_state, start


def apply_success(
    state: SearchState, generation: int, shops: Sequence[ShopRecord], append: bool
) -> SearchState:
    """取得成功時の状態遷移."""
    if generation != state.generation:
        return state

    if append:
        merged = state.shops + tuple(shops)
        end_of_results = state.end_of_results
    else:
        merged = tuple(shops)
        end_of_results = False

    # 読み込み数が0なら最後まで読み込まれたと判断
    if not shops:
        end_of_results = True

    return replace(
        state,
        shops=merged,
        in_flight=False,
        end_of_results=end_of_results,
        status="",
    )


def apply_failure(state: SearchState, generation: int) -> SearchState:
    """取得失敗時の状態遷移."""
    if generation != state.generation:
        return state
    return replace(
        state,
        shops=(),
        in_flight=False,
        end_of_results=True,
        status=NO_RESULTS_MESSAGE,
    )


def should_prefetch(state: SearchState, index: int, threshold: int = PREFETCH_THRESHOLD) -> bool:
    """index 行目の表示時に追加読み込みすべきか."""
    return len(state.shops) - index < threshold


class SearchController:
    """検索状態を保持し、API 呼び出しを非同期に実行する."""

    def __init__(
        self,
        fetcher: Fetcher,
        executor: Executor | None = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._fetcher = fetcher
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="gourmet-fetch")
        self._page_size = page_size
        self._state = SearchState()
        self._lock = threading.RLock()
        self._pending: Future | None = None
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> SearchState:
        return self._state

    def subscribe(self, callback: Subscriber) -> None:
        """状態が変わるたびに呼ばれるコールバックを登録する."""
        self._subscribers.append(callback)

    def search(self, keyword: str) -> Future | None:
        """キーワードを設定して新規検索する."""
        with self._lock:
            self._state = replace(self._state, keyword=keyword)
        return self.load_more(append=False)

    def refresh(self) -> Future | None:
        """現在のキーワードで再読み込みする."""
        return self.load_more(append=False)

    def on_row_rendered(self, index: int) -> Future | None:
        """行の表示通知. 末尾付近なら追加読み込みする."""
        if should_prefetch(self._state, index):
            return self.load_more(append=True)
        return None

    def load_more(self, append: bool = False) -> Future | None:
        """店舗リストを読み込む.

        Returns:
            状態反映まで完了すると解決する Future。読み込みを開始しなかった場合は None。
        """
        with self._lock:
            started = begin_fetch(self._state, append)
            if started is None:
                return None
            if self._pending is not None and not self._pending.done():
                logger.info("送信中のリクエストを打ち切ります: generation=%d", self._state.generation)
                self._pending.cancel()
            self._state, start = started
            generation = self._state.generation
            keyword = self._state.keyword
            future = self._executor.submit(self._run, keyword, start, generation, append)
            self._pending = future
            self._notify(self._state)
        return future

    def cancel(self) -> None:
        """送信中のリクエストを打ち切る. 応答が届いても反映しない."""
        with self._lock:
            if not self._state.in_flight:
                return
            if self._pending is not None:
                self._pending.cancel()
            self._pending = None
            self._state = replace(self._state, in_flight=False, generation=self._state.generation + 1)
            logger.info("読み込みをキャンセルしました")
            self._notify(self._state)

    def wait(self, timeout: float | None = None) -> SearchState:
        """送信中のリクエストがあれば状態反映まで待つ."""
        pending = self._pending
        if pending is not None:
            wait([pending], timeout=timeout)
        return self._state

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def _run(self, keyword: str, start: int, generation: int, append: bool) -> SearchState:
        try:
            shops = self._fetcher(keyword, start, self._page_size)
        except FetchError as e:
            logger.warning("検索結果なし: keyword=%s, error=%s", keyword, e)
            shops = None
        except Exception:
            # 想定外の例外でも送信中フラグは必ず解除する
            logger.exception("店舗検索中に予期しないエラー: keyword=%s, start=%d", keyword, start)
            shops = None

        with self._lock:
            if generation != self._state.generation:
                logger.info("古い応答を破棄しました: generation=%d", generation)
                return self._state
            if shops is None:
                self._state = apply_failure(self._state, generation)
            else:
                self._state = apply_success(self._state, generation, shops, append)
            self._notify(self._state)
            return self._state

    def _notify(self, state: SearchState) -> None:
        for callback in self._subscribers:
            callback(state)
