"""SFTPバックエンドのテスト（paramiko.SSHClientをモック）"""

import errno
import stat
import uuid
from unittest.mock import MagicMock, call, patch

import paramiko
import pytest

from services.file_storage import (
    StorageAccessError,
    StorageAlreadyExistsError,
    StorageNotFoundError,
    StorageUnsupportedError,
    uuid_id_mapper,
)
from services.file_storage.backends.sftp import SftpFileStorageService

FILE_ID = uuid.UUID("467f28f8-5a5a-4f10-9fce-ed2b5eb5ddd4")


def _not_found() -> IOError:
    return IOError(errno.ENOENT, "No such file")


def _entry(filename: str, is_dir: bool) -> MagicMock:
    mode = stat.S_IFDIR if is_dir else stat.S_IFREG
    return MagicMock(filename=filename, st_mode=mode | 0o755)


@pytest.fixture
def ssh_client():
    with patch("services.file_storage.backends.sftp.paramiko.SSHClient") as ssh_class:
        yield ssh_class.return_value


@pytest.fixture
def sftp(ssh_client):
    return ssh_client.open_sftp.return_value


@pytest.fixture
def sftp_storage():
    return SftpFileStorageService(
        remote_host="sftp.example.com",
        remote_port=2222,
        username="user",
        password="secret",
        root_directory="/upload",
        connect_options={"timeout": 10},
        id_mapper=uuid_id_mapper
    )


def test_connect_arguments(sftp_storage, ssh_client, sftp):
    sftp_storage.exists(FILE_ID)

    ssh_client.connect.assert_called_once_with(
        hostname="sftp.example.com", port=2222, username="user", password="secret", timeout=10
    )
    sftp.lstat.assert_called_once_with("/upload/4/6/7/f/28f8-5a5a-4f10-9fce-ed2b5eb5ddd4")


def test_exists_not_found(sftp_storage, sftp):
    sftp.lstat.side_effect = _not_found()
    assert sftp_storage.exists(FILE_ID) is False


def test_session_closed_on_error(sftp_storage, ssh_client, sftp):
    """エラー時もセッションはクローズされる"""
    sftp.lstat.side_effect = IOError(errno.EACCES, "Permission denied")

    with pytest.raises(StorageAccessError):
        sftp_storage.exists(FILE_ID)

    sftp.close.assert_called_once_with()
    ssh_client.close.assert_called_once_with()


def test_connection_failure(sftp_storage, ssh_client):
    ssh_client.connect.side_effect = paramiko.SSHException("handshake failed")

    with pytest.raises(StorageAccessError):
        sftp_storage.exists(FILE_ID)
    ssh_client.close.assert_called_once_with()


def test_create_makes_missing_directories(sftp_storage, sftp):
    """存在しないディレクトリは1階層ずつ作成される"""
    sftp.lstat.side_effect = _not_found()
    existing = {"/upload", "4", "6"}

    def chdir(path):
        if path not in existing:
            existing.add(path)
            raise _not_found()

    sftp.chdir.side_effect = chdir

    sftp_storage.create(FILE_ID, b"Hello World")

    assert sftp.mkdir.call_args_list == [call("7"), call("f")]
    args, kwargs = sftp.putfo.call_args
    assert args[1] == "28f8-5a5a-4f10-9fce-ed2b5eb5ddd4"
    assert args[0].getvalue() == b"Hello World"
    assert kwargs == {"file_size": 11, "confirm": True}


def test_create_existing(sftp_storage, sftp):
    with pytest.raises(StorageAlreadyExistsError):
        sftp_storage.create(FILE_ID, b"data")
    sftp.putfo.assert_not_called()


def test_get_bytes(sftp_storage, sftp):
    sftp.getfo.side_effect = lambda name, buffer: buffer.write(b"Hello World")

    assert sftp_storage.get_bytes(FILE_ID) == b"Hello World"
    sftp.chdir.assert_called_with("/upload/4/6/7/f")
    assert sftp.getfo.call_args[0][0] == "28f8-5a5a-4f10-9fce-ed2b5eb5ddd4"


def test_get_stream_is_detached_from_session(sftp_storage, ssh_client, sftp):
    sftp.getfo.side_effect = lambda name, buffer: buffer.write(b"data")

    stream = sftp_storage.get_stream(FILE_ID)

    ssh_client.close.assert_called_once_with()
    assert stream.read() == b"data"


def test_get_bytes_missing(sftp_storage, sftp):
    sftp.lstat.side_effect = _not_found()
    with pytest.raises(StorageNotFoundError):
        sftp_storage.get_bytes(FILE_ID)


def test_get_size(sftp_storage, sftp):
    sftp.stat.return_value = MagicMock(st_size=11)
    assert sftp_storage.get_size(FILE_ID) == 11


def test_delete(sftp_storage, sftp):
    sftp_storage.delete(FILE_ID)
    sftp.remove.assert_called_once_with("28f8-5a5a-4f10-9fce-ed2b5eb5ddd4")


def test_range_not_supported(sftp_storage, ssh_client):
    with pytest.raises(StorageUnsupportedError) as exc_info:
        sftp_storage.get_bytes_range(FILE_ID, 0, 5)
    assert "not supported by SFTP storage" in str(exc_info.value)
    ssh_client.connect.assert_not_called()


def test_delete_all_keeps_root(sftp_storage, sftp):
    listing = {
        "/upload": [_entry("4", True), _entry("readme.txt", False)],
        "/upload/4": [_entry("data.bin", False)],
    }
    sftp.listdir_attr.side_effect = lambda path: listing[path]

    sftp_storage.delete_all()

    assert sftp.remove.call_args_list == [call("/upload/4/data.bin"), call("/upload/readme.txt")]
    sftp.rmdir.assert_called_once_with("/upload/4")
