"""カスタム例外

ファイルストレージ関連のエラーを表す例外クラス。
すべてStorageErrorのサブクラスのため、呼び出し側はバックエンドに依存せず
StorageErrorのみを捕捉すればよい。
"""


class StorageError(Exception):
    """ストレージ操作の基底例外"""
    pass


class StorageNotFoundError(StorageError):
    """ファイルが見つからない"""
    pass


class StorageAlreadyExistsError(StorageError):
    """ファイルが既に存在する"""
    pass


class StorageUnsupportedError(StorageError):
    """バックエンドが対応していない操作"""
    pass


class StorageAccessError(StorageError):
    """ストレージアクセスエラー（I/O、ネットワーク、認証等）"""
    pass


class StorageConfigError(StorageError):
    """設定エラー"""
    pass


class BackendNotRegisteredError(StorageError):
    """バックエンドが未登録"""
    pass
