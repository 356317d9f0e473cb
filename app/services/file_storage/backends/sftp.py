"""SFTPストレージバックエンド

paramikoを使用する。操作ごとに新しいSSHセッションを開き、
処理後は成功・失敗にかかわらず必ずクローズする。
"""

import errno
import io
import logging
import stat
from contextlib import contextmanager
from typing import Any, BinaryIO, Dict, Iterator, Optional

import paramiko

from ..exceptions import (
    StorageAccessError,
    StorageAlreadyExistsError,
    StorageNotFoundError,
    StorageUnsupportedError,
)
from ..ids import SEPARATOR, IdMapper
from .base import FileStorageService

logger = logging.getLogger(__name__)


class SftpFileStorageService(FileStorageService):
    """SFTPストレージバックエンド（操作ごとにセッションを確立）"""

    def __init__(
        self,
        remote_host: str,
        remote_port: int,
        username: str,
        password: str,
        root_directory: str,
        connect_options: Optional[Dict[str, Any]] = None,
        id_mapper: Optional[IdMapper] = None
    ):
        """
        SFTPバックエンドを初期化（接続は各操作時に行う）

        Args:
            remote_host: 接続先ホスト
            remote_port: 接続先ポート
            username: ユーザー名
            password: パスワード
            root_directory: リモートのルートディレクトリ
            connect_options: SSHClient.connectへ渡す追加引数（timeout等）
            id_mapper: IDマッパー
        """
        super().__init__(id_mapper)
        self.remote_host = remote_host
        self.remote_port = remote_port
        self.username = username
        self.password = password
        self.root_directory = root_directory.rstrip(SEPARATOR) or SEPARATOR
        self.connect_options = dict(connect_options or {})
        logger.info(f"SftpFileStorageService initialized: host={remote_host}:{remote_port}, root={self.root_directory}")

    @property
    def storage_description(self) -> str:
        return "SFTP storage"

    @contextmanager
    def _session(self) -> Iterator[paramiko.SFTPClient]:
        """SFTPセッションを開き、終了時に必ずクローズする"""
        ssh = paramiko.SSHClient()
        try:
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            ssh.connect(
                hostname=self.remote_host,
                port=self.remote_port,
                username=self.username,
                password=self.password,
                **self.connect_options
            )
            sftp = ssh.open_sftp()
            try:
                yield sftp
            finally:
                sftp.close()
        finally:
            ssh.close()

    # --- パス操作 ---

    def _remote_path(self, path: str) -> str:
        return f"{self.root_directory.rstrip(SEPARATOR)}{SEPARATOR}{path}"

    @staticmethod
    def _split(path: str):
        """パスを（親ディレクトリ, ファイル名）に分割"""
        if SEPARATOR not in path:
            return '', path
        parent, file_name = path.rsplit(SEPARATOR, 1)
        return parent, file_name

    def _exists(self, sftp: paramiko.SFTPClient, id: Any) -> bool:
        try:
            sftp.lstat(self._remote_path(self.generate_path(id)))
            return True
        except IOError as e:
            if e.errno == errno.ENOENT:
                return False
            raise StorageAccessError(f"Unable to verify stats for file with ID: {id}") from e

    def _create_directories(self, sftp: paramiko.SFTPClient, folder_path: str) -> None:
        """ルートから1階層ずつ移動し、移動できなければ作成してから移動する"""
        sftp.chdir(self.root_directory)
        for folder in folder_path.split(SEPARATOR):
            if not folder:
                continue
            try:
                sftp.chdir(folder)
            except IOError:
                sftp.mkdir(folder)
                sftp.chdir(folder)

    def _enter_parent(self, sftp: paramiko.SFTPClient, id: Any) -> str:
        """ファイルの親ディレクトリへ移動し、ファイル名を返す"""
        folder_path, file_name = self._split(self.generate_path(id))
        sftp.chdir(self._remote_path(folder_path) if folder_path else self.root_directory)
        return file_name

    # --- 操作 ---

    def exists(self, id: Any) -> bool:
        try:
            with self._session() as sftp:
                return self._exists(sftp, id)
        except (paramiko.SSHException, OSError) as e:
            raise StorageAccessError(f"Unable to verify file stats with ID: {id}") from e

    def get_size(self, id: Any) -> int:
        try:
            with self._session() as sftp:
                if not self._exists(sftp, id):
                    raise StorageNotFoundError(f"Unable to get file size with ID: {id} - file does not exist")
                file_name = self._enter_parent(sftp, id)
                return sftp.stat(file_name).st_size
        except (paramiko.SSHException, OSError) as e:
            raise StorageAccessError(f"Unable to get file size with ID: {id}") from e

    def _create(self, id: Any, data: bytes) -> None:
        self._put(id, io.BytesIO(data), len(data))

    def _create_from_stream(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        self._put(id, stream, content_size)

    def _put(self, id: Any, stream: BinaryIO, content_size: int) -> None:
        try:
            with self._session() as sftp:
                if self._exists(sftp, id):
                    raise StorageAlreadyExistsError(f"Unable to create file with ID: {id} - file already exists")
                folder_path, file_name = self._split(self.generate_path(id))
                self._create_directories(sftp, folder_path)
                sftp.putfo(stream, file_name, file_size=content_size, confirm=True)
        except (paramiko.SSHException, OSError) as e:
            raise StorageAccessError(f"Unable to create file with ID: {id}") from e
        logger.debug(f"SFTP upload success: {self.generate_path(id)} ({content_size} bytes)")

    def delete(self, id: Any) -> None:
        try:
            with self._session() as sftp:
                if not self._exists(sftp, id):
                    raise StorageNotFoundError(f"Unable to delete file with ID: {id} - file not found")
                file_name = self._enter_parent(sftp, id)
                sftp.remove(file_name)
        except (paramiko.SSHException, OSError) as e:
            raise StorageAccessError(f"Unable to delete file with ID: {id}") from e

    def _download(self, id: Any, operation: str) -> bytes:
        try:
            with self._session() as sftp:
                if not self._exists(sftp, id):
                    raise StorageNotFoundError(f"Unable to {operation} with ID: {id} - file not found")
                file_name = self._enter_parent(sftp, id)
                buffer = io.BytesIO()
                sftp.getfo(file_name, buffer)
                return buffer.getvalue()
        except (paramiko.SSHException, OSError) as e:
            raise StorageAccessError(f"Unable to {operation} with ID: {id}") from e

    def get_bytes(self, id: Any) -> bytes:
        return self._download(id, "get bytes from file")

    def get_bytes_range(self, id: Any, start: int, end: int) -> bytes:
        raise StorageUnsupportedError("Method get_bytes_range(...) is not supported by SFTP storage")

    def get_stream(self, id: Any) -> BinaryIO:
        # セッションは操作終了時にクローズされるため、内容をメモリに読み込んで返す
        return io.BytesIO(self._download(id, "get input stream from file"))

    def delete_all(self) -> None:
        try:
            with self._session() as sftp:
                self._recursive_delete(sftp, self.root_directory)
        except (paramiko.SSHException, OSError) as e:
            raise StorageAccessError("Unable to delete all available files") from e

    def _recursive_delete(self, sftp: paramiko.SFTPClient, path: str) -> None:
        for entry in sftp.listdir_attr(path):
            entry_path = f"{path.rstrip(SEPARATOR)}{SEPARATOR}{entry.filename}"
            if stat.S_ISDIR(entry.st_mode):
                self._recursive_delete(sftp, entry_path)
                sftp.rmdir(entry_path)
            else:
                sftp.remove(entry_path)
