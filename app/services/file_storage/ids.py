"""ファイルストレージID

呼び出し側のIDからバックエンド相対パスを生成する。
デフォルト方式はIDの文字列表現の先頭4文字を1文字ずつディレクトリに分割する
シャーディング方式で、1ディレクトリあたりのエントリ数を抑える。

例:
    "467f28f8-5a5a-4f10-9fce-ed2b5eb5ddd4" -> "4/6/7/f/28f8-5a5a-4f10-9fce-ed2b5eb5ddd4"
    "1HCpXwx2EK9oYluWbacgeCnFcLf"          -> "1/H/C/p/Xwx2EK9oYluWbacgeCnFcLf"
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol, Union, runtime_checkable

from ksuid import Ksuid

SEPARATOR = "/"
SHARD_DEPTH = 4


def sharded_path(text: str) -> str:
    """
    文字列をシャーディングしたパスに変換する

    Args:
        text: IDの文字列表現

    Returns:
        str: 先頭4文字を1文字ずつ区切ったパス。4文字以下の場合は文字列そのもの

    Raises:
        ValueError: 空文字列が指定された場合
    """
    if not text:
        raise ValueError("Unable to generate path from empty ID")
    if len(text) <= SHARD_DEPTH:
        return text
    return SEPARATOR.join(list(text[:SHARD_DEPTH]) + [text[SHARD_DEPTH:]])


def join_path(*segments: Any) -> str:
    """エンティティ属性をセパレータで連結する（カスタム戦略用）"""
    parts = [str(segment).strip(SEPARATOR) for segment in segments]
    if not all(parts):
        raise ValueError(f"Unable to generate path from segments: {segments!r}")
    return SEPARATOR.join(parts)


@runtime_checkable
class FileStorageId(Protocol):
    """パス生成能力を持つIDのインターフェース"""

    value: Any

    def generate_path(self) -> str:
        ...


@dataclass(frozen=True)
class UUIDFileStorageId:
    """UUIDベースのファイルストレージID"""
    value: uuid.UUID

    def generate_path(self) -> str:
        return sharded_path(str(self.value))

    def __str__(self) -> str:
        return self.generate_path()


@dataclass(frozen=True)
class KsuidFileStorageId:
    """KSUIDベースのファイルストレージID（時刻順ソート可能）"""
    value: Ksuid

    def generate_path(self) -> str:
        return sharded_path(str(self.value))

    def __str__(self) -> str:
        return self.generate_path()


@dataclass(frozen=True)
class PathFileStorageId:
    """任意のエンティティと事前計算済みパスの組"""
    value: Any
    path: str

    def generate_path(self) -> str:
        return self.path

    def __str__(self) -> str:
        return self.path


IdMapper = Callable[[Any], FileStorageId]


def uuid_id_mapper(value: Union[uuid.UUID, str]) -> UUIDFileStorageId:
    if not isinstance(value, uuid.UUID):
        value = uuid.UUID(str(value))
    return UUIDFileStorageId(value)


def ksuid_id_mapper(value: Union[Ksuid, str]) -> KsuidFileStorageId:
    if not isinstance(value, Ksuid):
        value = Ksuid.from_base62(str(value))
    return KsuidFileStorageId(value)


def string_id_mapper(value: Any) -> PathFileStorageId:
    return PathFileStorageId(value, sharded_path(str(value)))


# 設定ファイルから名前で参照できるマッパー
ID_MAPPERS: Dict[str, IdMapper] = {
    "uuid": uuid_id_mapper,
    "ksuid": ksuid_id_mapper,
    "string": string_id_mapper,
}
