"""ファイルストレージサービス抽象基底クラス

すべてのストレージバックエンドが実装すべきインターフェースを定義。
呼び出し側のIDはIDマッパーでバックエンド相対パスに変換される。

操作はすべて同期的で、バックエンド間の原子性は保証しない。
exists → create のようなチェック後の操作は競合しうる。
"""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Optional

from ..exceptions import StorageError, StorageNotFoundError
from ..ids import IdMapper, string_id_mapper


class FileStorageService(ABC):
    """ファイルストレージサービスの抽象基底クラス"""

    def __init__(self, id_mapper: Optional[IdMapper] = None):
        """
        Args:
            id_mapper: IDからFileStorageIdへの変換関数。Noneの場合は文字列シャーディング
        """
        self._id_mapper = id_mapper or string_id_mapper

    @property
    def id_mapper(self) -> IdMapper:
        """このサービスで使用するIDマッパー"""
        return self._id_mapper

    @property
    @abstractmethod
    def storage_description(self) -> str:
        """ストレージ種別の説明"""
        pass

    def generate_path(self, id: Any) -> str:
        """IDからバックエンド相対パスを生成する"""
        return self._id_mapper(id).generate_path()

    def __str__(self) -> str:
        return self.storage_description

    # --- 存在確認（Existence） ---

    @abstractmethod
    def exists(self, id: Any) -> bool:
        """
        ファイルが存在するか確認する

        Args:
            id: ファイルID

        Returns:
            bool: 存在する場合True

        Raises:
            StorageError: バックエンドへの問い合わせに失敗した場合（不在はFalse）
        """
        pass

    def does_not_exist(self, id: Any) -> bool:
        """ファイルが存在しない場合True"""
        return not self.exists(id)

    @abstractmethod
    def get_size(self, id: Any) -> int:
        """
        ファイルサイズ（バイト数）を取得する

        Raises:
            StorageNotFoundError: ファイルが存在しない場合
            StorageError: 取得に失敗した場合
        """
        pass

    # --- 書き込み系メソッド（Write Operations） ---

    def create(self, id: Any, data: bytes, overwrite: bool = False) -> None:
        """
        バイト列からファイルを作成する

        Args:
            id: ファイルID
            data: ファイル内容
            overwrite: Trueの場合、既存ファイルを削除してから作成

        Raises:
            StorageAlreadyExistsError: overwrite=Falseでファイルが既に存在する場合
            StorageError: 作成に失敗した場合
        """
        if overwrite:
            self.delete_if_exists(id)
        self._create(id, data)

    def create_from_stream(self, id: Any, stream: BinaryIO, content_size: int, overwrite: bool = False) -> None:
        """
        ストリームからファイルを作成する

        ストリームは成功・失敗にかかわらずこの呼び出し内で消費され、クローズされる。

        Args:
            id: ファイルID
            stream: 読み込み可能なバイナリストリーム
            content_size: 内容のバイト数
            overwrite: Trueの場合、既存ファイルを削除してから作成
        """
        try:
            if overwrite:
                self.delete_if_exists(id)
            self._create_from_stream(id, stream, content_size)
        finally:
            stream.close()

    @abstractmethod
    def _create(self, id: Any, data: bytes) -> None:
        """バイト列からファイルを新規作成する（既存の場合はStorageAlreadyExistsError）"""
        pass

    @abstractmethod
    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        """ストリームからファイルを新規作成する（既存の場合はStorageAlreadyExistsError）"""
        pass

    @abstractmethod
    def delete(self, id: Any) -> None:
        """
        ファイルを削除する

        Raises:
            StorageNotFoundError: ファイルが存在しない場合
            StorageError: 削除に失敗した場合
        """
        pass

    def delete_if_exists(self, id: Any) -> None:
        """ファイルが存在すれば削除する（不在の場合は何もしない）"""
        try:
            self.delete(id)
        except StorageNotFoundError:
            pass

    @abstractmethod
    def delete_all(self) -> None:
        """このインスタンスが管理するすべてのファイルを削除する"""
        pass

    # --- 読み取り系メソッド（Read Operations） ---

    @abstractmethod
    def get_bytes(self, id: Any) -> bytes:
        """
        ファイル内容をバイト列で取得する

        Raises:
            StorageNotFoundError: ファイルが存在しない場合
            StorageError: 読み込みに失敗した場合
        """
        pass

    @abstractmethod
    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        """
        ファイル内容の範囲を取得する

        Args:
            id: ファイルID
            start: 開始位置（含む）
            end: 終了位置（含まない）

        Raises:
            StorageNotFoundError: ファイルが存在しない場合
            StorageUnsupportedError: バックエンドが範囲読み込みに対応していない場合
            StorageError: 読み込みに失敗した場合
        """
        pass

    @abstractmethod
    def get_stream(self, id: Any) -> BinaryIO:
        """
        ファイル内容を読み込むストリームを取得する

        返されたストリームのクローズは呼び出し側の責任。
        """
        pass

    # --- ユーティリティ ---

    @staticmethod
    def validate_range(id: Any, start: int, end: int) -> None:
        """範囲指定を検証する（0 <= start <= end）"""
        if start < 0 or end < start:
            raise StorageError(f"Invalid byte range [{start}, {end}) for file with ID: {id}")
