# allocation_health/utils/error_definitions.py

"""
健全性レポート計算で使用されるカスタム例外を定義します。
"""

class BaseAllocationError(Exception):
    """割り当て健全性関連エラーの基底クラス。"""
    pass

class NotFoundError(BaseAllocationError):
    """
    割り当て計画、または参照される学年度の予算設定が存在しない場合に送出される例外。
    """
    pass

class FetchTimeoutError(NotFoundError):
    """
    外部サービスからの取得がタイムアウト、またはキャンセルされた場合に送出される例外。
    NotFoundError のサブクラスなので、呼び出し側からは計画が見つからない場合と同様に扱える。
    """
    pass

class UpstreamUnavailableError(BaseAllocationError):
    """
    外部サービス(計画、割り当て、予算、人員要件)に接続できなかった場合に送出される例外。
    """
    pass

class InvalidInputError(BaseAllocationError):
    """
    台帳の行や設定値が無効な場合に送出される例外。
    (例: 未知のステータス、負のグループサイズ、負の配分時間)
    """
    pass
