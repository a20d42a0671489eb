from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ExchangeCredentials(BaseModel):
    """API credentials attached to an exchange account."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    api_key: str = Field(..., min_length=1)
    api_secret: SecretStr
    subaccount: str | None = None
    recv_window: int | None = Field(default=None, gt=0)


@dataclass(slots=True, frozen=True)
class Account:
    """Caller-owned trading account; the engine only reads it."""

    account_id: str
    exchange: str
    credentials: ExchangeCredentials | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.account_id:
            raise ValueError("account_id must be provided")
        if not self.exchange:
            raise ValueError("exchange must be provided")
        object.__setattr__(self, "exchange", self.exchange.strip().lower())


__all__ = ["Account", "ExchangeCredentials"]
