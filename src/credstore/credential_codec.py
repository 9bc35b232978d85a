from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .codec import FailSoftCodec
from .domain import Credentials, LoginCredentials
from .errors import DecodeError, InvalidArgumentError
from .serialization import Json, PydanticJson
from .wire import TAGGED_FORMAT_VERSION, WireFormat

LOGIN_PROBE = '"user":'
TAG_PROBE = '"type":'


class _WireModel(BaseModel):
    model_config = ConfigDict(strict=True, populate_by_name=True, frozen=True)


class JsonLoginCredentials(_WireModel):
    user: str | None = None
    password: str | None = None
    private_key: str | None = Field(default=None, alias="privateKey")
    # Only ever written as true; false is left out.
    authenticate_sudo: bool | None = Field(default=None, alias="authenticateSudo")


class JsonCredentials(_WireModel):
    identity: str | None = None
    credential: str | None = None


class TagHeader(BaseModel):
    type: str
    version: int


class TaggedLoginCredentials(JsonLoginCredentials):
    type: Literal["login"] = "login"
    version: int = TAGGED_FORMAT_VERSION


class TaggedCredentials(JsonCredentials):
    type: Literal["plain"] = "plain"
    version: int = TAGGED_FORMAT_VERSION


def _login_fields(login: LoginCredentials) -> dict[str, Any]:
    return {
        "user": login.user,
        "password": login.password,
        "private_key": login.private_key,
        "authenticate_sudo": True if login.authenticate_sudo else None,
    }


def _from_login_model(val: JsonLoginCredentials) -> LoginCredentials:
    return LoginCredentials.for_user(
        val.user,
        password=val.password,
        private_key=val.private_key,
        authenticate_sudo=val.authenticate_sudo is True,
    )


def _from_plain_model(val: JsonCredentials) -> Credentials:
    return Credentials(identity=val.identity, credential=val.credential)


class CredentialCodec(FailSoftCodec[Credentials]):
    """
    Credentials <-> UTF-8 JSON bytes.

    Encoding follows `wire_format`. Decoding accepts both formats: payloads with a
    `"type":` key are tagged and must carry the current version; anything else is
    legacy, where the presence of `"user":` selects the login shape.
    """

    name = "credentials"

    def __init__(
        self,
        *,
        json: Json | None = None,
        wire_format: WireFormat = WireFormat.LEGACY,
        logger: Any | None = None,
    ):
        super().__init__(logger=logger)
        self.json = json or PydanticJson()
        self.wire_format = WireFormat(wire_format)

    def _encode(self, value: Credentials) -> bytes:
        tagged = self.wire_format is WireFormat.TAGGED
        model: BaseModel
        if isinstance(value, LoginCredentials):
            if value.user is None and not tagged:
                # Without "user" the legacy payload would read back as plain credentials.
                raise InvalidArgumentError("login credentials need a user to be stored in the legacy format")
            fields = _login_fields(value)
            model = TaggedLoginCredentials(**fields) if tagged else JsonLoginCredentials(**fields)
        else:
            fields = {"identity": value.identity, "credential": value.credential}
            model = TaggedCredentials(**fields) if tagged else JsonCredentials(**fields)
        return self.json.to_json(model).encode("utf-8")

    def _decode(self, data: bytes) -> Credentials:
        text = data.decode("utf-8")
        if TAG_PROBE in text:
            return self._decode_tagged(text)
        if LOGIN_PROBE not in text:
            return _from_plain_model(self.json.from_json(text, JsonCredentials))
        return _from_login_model(self.json.from_json(text, JsonLoginCredentials))

    def _decode_tagged(self, text: str) -> Credentials:
        header = self.json.from_json(text, TagHeader)
        if header.version != TAGGED_FORMAT_VERSION:
            raise DecodeError(f"Unsupported credential format version: {header.version}")
        if header.type == "login":
            return _from_login_model(self.json.from_json(text, TaggedLoginCredentials))
        if header.type == "plain":
            return _from_plain_model(self.json.from_json(text, TaggedCredentials))
        raise DecodeError(f"Unknown credential type: {header.type!r}")
