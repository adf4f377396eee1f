"""Authentication records and the schema that stores them."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from birb.connection import DatabaseConnection
from birb.table import SerialId

IpAddr = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class _Bytes:
    value: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bytes(self.value))

    def __bytes__(self) -> bytes:
        return self.value


class Salt(_Bytes):
    """Random bytes mixed into a hash."""


class HashedData(_Bytes):
    """The output of hashing a secret."""


def _as(kind: type, value: object) -> object:
    return value if isinstance(value, kind) else kind(value)


def _as_ip(value: IpAddr | str | None) -> IpAddr | None:
    return None if value is None else ipaddress.ip_address(value)


@dataclass
class Admin:
    id: SerialId
    username: str
    hashed_pass: HashedData
    salt: Salt
    created_at: datetime
    issued_by: IpAddr | None = None

    def __post_init__(self) -> None:
        self.hashed_pass = _as(HashedData, self.hashed_pass)
        self.salt = _as(Salt, self.salt)
        self.issued_by = _as_ip(self.issued_by)


@dataclass
class RefreshToken:
    id: SerialId
    hashed_token: HashedData
    salt: Salt
    created_at: datetime
    issued_by: IpAddr | None = None

    def __post_init__(self) -> None:
        self.hashed_token = _as(HashedData, self.hashed_token)
        self.salt = _as(Salt, self.salt)
        self.issued_by = _as_ip(self.issued_by)


@dataclass
class AuthSchema:
    """Entry point to the authentication tables."""

    connection: DatabaseConnection

    @classmethod
    async def new(cls, connection: DatabaseConnection) -> AuthSchema:
        return cls(connection)