"""設定モジュール — 環境変数・定数定義."""

from __future__ import annotations

import os
import plistlib
from pathlib import Path
from xml.parsers.expat import ExpatError

from dotenv import load_dotenv

from gourmet.exceptions import ConfigError

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- ホットペッパーグルメ API ---
API_URL = "https://webservice.recruit.co.jp/hotpepper/gourmet/v1/"
API_KEY_ENV = "HOTPEPPER_API_KEY"
API_KEY_PLIST = _PROJECT_ROOT / "ApiKey.plist"
RESPONSE_FORMAT = "json"

# --- ページング ---
PAGE_SIZE = 20
PREFETCH_THRESHOLD = 10  # 末尾から何件手前で追加読み込みするか

# --- リクエスト設定 ---
REQUEST_TIMEOUT = float(os.environ.get("GOURMET_REQUEST_TIMEOUT", "15"))  # 秒

# --- お気に入り ---
FAVORITES_BACKEND = os.environ.get("GOURMET_FAVORITES_BACKEND", "sqlite")
DB_PATH = Path(os.environ.get("GOURMET_DB_PATH", _PROJECT_ROOT / "data" / "favorites.sqlite3"))

# --- Supabase（FAVORITES_BACKEND=supabase の場合のみ必須） ---
SUPABASE_URL: str | None = os.environ.get("SUPABASE_URL")
SUPABASE_SECRET_KEY: str | None = os.environ.get("SUPABASE_SECRET_KEY")

# --- ログ ---
LOG_DIR = Path(os.environ.get("GOURMET_LOG_DIR", _PROJECT_ROOT / "logs"))


def load_api_key(plist_path: Path | None = None) -> str:
    """API キーを読み込む.

    環境変数 HOTPEPPER_API_KEY を優先し、無ければ ApiKey.plist の
    "key" を使う。

    Raises:
        ConfigError: キーが見つからない、または plist が壊れている場合
    """
    key = os.environ.get(API_KEY_ENV, "").strip()
    if key:
        return key

    path = plist_path or API_KEY_PLIST
    try:
        with open(path, "rb") as f:
            plist = plistlib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"API キーが設定されていません: {API_KEY_ENV} または {path}") from e
    except (OSError, ValueError, ExpatError) as e:
        raise ConfigError(f"API キーファイルを読み込めません: {path}") from e

    key = plist.get("key") if isinstance(plist, dict) else None
    if not isinstance(key, str) or not key.strip():
        raise ConfigError(f"API キーファイルに key がありません: {path}")
    return key.strip()
