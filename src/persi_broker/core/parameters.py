"""User parameters accepted on provision and bind.

Parameters arrive as an opaque JSON blob (raw bytes/str) or an already decoded
JSON object. Unknown fields and type mismatches are rejected rather than
ignored.
"""

from collections.abc import Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from persi_broker.errors import InvalidParametersError

AccessMode = Literal["ReadWriteOnce", "ReadOnlyMany", "ReadWriteMany", "ReadWriteOncePod"]

DEFAULT_ACCESS_MODE: AccessMode = "ReadWriteMany"

RawParameters = bytes | str | Mapping[str, Any] | None

T = TypeVar("T", bound=BaseModel)


class ProvisionParameters(BaseModel):
    """Parameters for `cf create-service`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    size: str | None = None
    access_mode: AccessMode | None = None


class BindParameters(BaseModel):
    """Parameters for `cf bind-service`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    dir: str | None = None


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "parameters"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_parameters(model: type[T], raw: RawParameters) -> T:
    """Validate raw parameters against a schema.

    Empty input yields the model defaults.

    Raises:
        InvalidParametersError: If the payload is not a JSON object matching the schema.
    """
    if raw is None or (isinstance(raw, (bytes, str)) and not raw.strip()):
        return model()

    try:
        if isinstance(raw, (bytes, str)):
            return model.model_validate_json(raw)
        if isinstance(raw, Mapping):
            return model.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidParametersError(
            f"error unmarshaling json user configuration: {_describe(e)}"
        ) from e

    raise InvalidParametersError(
        f"error unmarshaling json user configuration: expected an object, got {type(raw).__name__}"
    )
