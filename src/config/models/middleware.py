from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, Field, model_validator


T = TypeVar("T", bound=str)


class MiddlewareConfigModel(BaseModel, Generic[T]):
    type: T

    def to_runtime_args(self) -> dict[str, Any]:
        return {}


class SimpleMiddlewareModel(MiddlewareConfigModel):
    """Middleware without settings"""
    type: Literal[
            "logging",
            "timing",
            "debug",
    ]

    def to_runtime_args(self) -> dict[str, Any]:
        return super().to_runtime_args()


class HeaderMiddlewareModel(MiddlewareConfigModel):
    type: Literal["header"] = "header"
    headers: dict[str, str]

    def to_runtime_args(self) -> dict[str, Any]:
        return {"headers": dict(self.headers)}


class BasicAuthMiddlewareModel(MiddlewareConfigModel):
    type: Literal["basic_auth"] = "basic_auth"
    username: str
    password: str

    def to_runtime_args(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
        }


class BearerMiddlewareModel(MiddlewareConfigModel):
    type: Literal["bearer"] = "bearer"
    token: str

    def to_runtime_args(self) -> dict[str, Any]:
        return {"token": self.token}


class TimeoutMiddlewareModel(MiddlewareConfigModel):
    type: Literal["timeout"] = "timeout"
    timeout: float = Field(ge=0, description="Seconds per attempt; 0 disables the limit")

    def to_runtime_args(self) -> dict[str, Any]:
        return {"timeout": self.timeout}


class RetryMiddlewareModel(MiddlewareConfigModel):
    """Retry middleware configuration"""
    type: Literal["retry"] = "retry"
    max_attempts: int = Field(default=3, ge=0, description="Retries after the first attempt")
    min_wait: float = Field(default=1.0, ge=0)
    max_wait: float = Field(default=30.0, ge=0)
    retry_status_codes: list[int] = []

    @model_validator(mode="after")
    def _check_waits(self) -> "RetryMiddlewareModel":
        if self.max_wait < self.min_wait:
            raise ValueError("max_wait must be >= min_wait")
        return self

    def to_runtime_args(self) -> dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "min_wait": self.min_wait,
            "max_wait": self.max_wait,
            "retry_status_codes": list(self.retry_status_codes),
        }


class StatusPolicyModel(MiddlewareConfigModel):
    """Allow-list or block-list of response status codes"""
    type: Literal["allow_status", "block_status"]
    codes: list[int] = Field(min_length=1)

    def to_runtime_args(self) -> dict[str, Any]:
        return {"codes": list(self.codes)}


MiddlewareConfigUnion = Annotated[
    Union[
        SimpleMiddlewareModel,
        HeaderMiddlewareModel,
        BasicAuthMiddlewareModel,
        BearerMiddlewareModel,
        TimeoutMiddlewareModel,
        RetryMiddlewareModel,
        StatusPolicyModel,
    ],
    Field(discriminator="type"),
]
