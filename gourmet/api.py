"""ホットペッパーグルメ API 呼び出しモジュール.

検索キーワード・開始位置・件数を指定して店舗一覧を1ページ取得する。
状態は持たないので、同時実行の制御は呼び出し側 (pagination) が行う。
"""

from __future__ import annotations

import logging

import requests

from gourmet.config import API_URL, PAGE_SIZE, REQUEST_TIMEOUT, RESPONSE_FORMAT
from gourmet.exceptions import FetchError
from gourmet.models import ShopRecord

logger = logging.getLogger(__name__)


def build_params(api_key: str, keyword: str, start: int, count: int = PAGE_SIZE) -> dict:
    """API リクエストのクエリパラメータを組み立てる.

    Args:
        api_key: API キー
        keyword: 検索キーワード（空文字は絞り込みなし）
        start: 開始位置（1始まり）
        count: 取得件数
    """
    return {
        "key": api_key,
        "start": start,
        "count": count,
        "keyword": keyword,
        "format": RESPONSE_FORMAT,
    }


def fetch_shops(
    api_key: str,
    keyword: str,
    start: int,
    count: int = PAGE_SIZE,
    session: requests.Session | None = None,
) -> list[ShopRecord]:
    """店舗一覧を1ページ取得する.

    Returns:
        店舗リスト。空リストは最後まで読み込んだことを示す。

    Raises:
        FetchError: 通信失敗、HTTP エラー、デコード失敗時
    """
    params = build_params(api_key, keyword, start, count)
    logger.info("API リクエスト: 開始位置=%d, 読み込み店舗数=%d, keyword=%s", start, count, keyword)

    http = session or requests
    try:
        resp = http.get(API_URL, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as e:
        logger.error("API リクエスト失敗: keyword=%s, start=%d, error=%s", keyword, start, e)
        raise FetchError(f"店舗検索に失敗しました: {e}") from e
    except ValueError as e:
        logger.error("API レスポンスが JSON ではありません: %s", e)
        raise FetchError("API レスポンスを解析できません") from e

    shops = parse_shops(payload)
    logger.info("受信店舗数: %d", len(shops))
    return shops


def parse_shops(payload: dict) -> list[ShopRecord]:
    """API レスポンス JSON から店舗リストを抽出する.

    Raises:
        FetchError: エラー応答、または想定外の構造の場合
    """
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, dict):
        raise FetchError("API レスポンスに results がありません")

    errors = results.get("error")
    if errors:
        if not isinstance(errors, list):
            errors = [errors]
        message = "; ".join(
            f"{err.get('code')}: {err.get('message')}" if isinstance(err, dict) else str(err)
            for err in errors
        )
        logger.error("API エラー応答: %s", message)
        raise FetchError(f"API エラー応答: {message}")

    entries = results.get("shop") or []
    try:
        return [ShopRecord.from_api(entry) for entry in entries]
    except (KeyError, AttributeError, TypeError) as e:
        logger.error("店舗データのデコード失敗: %s", e)
        raise FetchError("店舗データをデコードできません") from e
