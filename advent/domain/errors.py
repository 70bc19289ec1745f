"""ドメイン固有の例外クラス"""


class AdventCalendarError(Exception):
    """Advent Calendar の基底例外"""

    pass


class ConfigLoadError(AdventCalendarError):
    """設定読み込みエラー（環境変数等）"""

    pass


class IdentityProviderError(AdventCalendarError):
    """認証プロバイダ呼び出しエラー（Firebase Auth REST API等）"""

    pass


class AuthError(AdventCalendarError):
    """サインイン・サインアウトの失敗。原因は __cause__ に保持する"""

    pass


class UnknownAuthError(AuthError):
    """プロバイダが成功を返したがユーザーが取得できなかった"""

    def __init__(self, message: str = "Unknown error occurred") -> None:
        super().__init__(message)


class CalendarNotFoundError(AdventCalendarError):
    """カレンダーが存在しない（または壊れたレコード）"""

    pass


class DoorNotFoundError(AdventCalendarError):
    """指定した日のドアがカレンダーに存在しない"""

    pass


class DoorLockedError(AdventCalendarError):
    """まだ開けられない日のドアを開けようとした"""

    pass


class PermissionDeniedError(AdventCalendarError):
    """カレンダーの作成者以外による編集"""

    pass
