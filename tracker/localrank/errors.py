"""例外定義.

単発の操作（1 回の検索）は呼び出し元へ送出する。
バッチ操作は TrackerError を項目単位で捕捉し、結果の error 欄に記録する。
"""

from __future__ import annotations

from localrank.config import PROVIDER_NAME


class TrackerError(Exception):
    """localrank の全例外の基底クラス."""


class ValidationError(TrackerError):
    """入力不足（キーワード・地域の未指定など）."""


class ConfigurationError(TrackerError):
    """API キーなど必須設定の欠落."""


class ProviderError(TrackerError):
    """検索 API が OK 以外のステータスを返した."""

    def __init__(self, status: str, provider: str = PROVIDER_NAME, detail: str | None = None):
        self.status = status
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider} error: {status}")


class TransportError(TrackerError):
    """検索 API への通信そのものに失敗した."""


class PersistenceError(TrackerError):
    """順位履歴の読み書きに失敗した."""
