from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    identity: str | None = None
    credential: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class LoginCredentials(Credentials):
    """
    Credentials used to log into a host.

    `identity` is the login user. `credential` is derived from the private key
    when one is set, otherwise from the password.
    """

    password: str | None = field(default=None, repr=False)
    private_key: str | None = field(default=None, repr=False)
    authenticate_sudo: bool = False

    def __post_init__(self) -> None:
        if self.credential is None:
            object.__setattr__(self, "credential", self.private_key or self.password)

    @classmethod
    def for_user(
        cls,
        user: str | None,
        *,
        password: str | None = None,
        private_key: str | None = None,
        authenticate_sudo: bool = False,
    ) -> "LoginCredentials":
        return cls(
            identity=user,
            password=password,
            private_key=private_key,
            authenticate_sudo=authenticate_sudo,
        )

    @property
    def user(self) -> str | None:
        return self.identity
