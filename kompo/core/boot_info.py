"""
BootInfo: what a client needs to send back so the server can rebuild a
komposer mid-interaction.

The descriptor travels in the X-Kompo-Info header as a signed JWT so that
the class name, model key and store cannot be tampered with.
"""

from __future__ import annotations

from typing import Any

import jwt
from pydantic import BaseModel, Field, ValidationError

from kompo.config import settings
from kompo.core.request import INFO_HEADER, KompoRequest
from kompo.exceptions import InvalidKompoInfo


class BootInfo(BaseModel):
    """Serialized prior state of a komposer."""

    model_config = {"populate_by_name": True, "frozen": True}

    kompo_class: str = Field(alias="kompoClass")
    model_key: Any = Field(default=None, alias="modelKey")
    store: dict[str, Any] = Field(default_factory=dict)
    parameters: dict[str, Any] = Field(default_factory=dict)
    kompoid: str | None = None


def encode_boot_info(info: BootInfo) -> str:
    """
    Sign a BootInfo for the X-Kompo-Info header.

    Args:
        info: Descriptor of the komposer being displayed

    Returns:
        Signed token string
    """
    payload = info.model_dump(by_alias=True, mode="json")
    return jwt.encode(payload, settings.secret, algorithm=settings.BOOT_INFO_ALGORITHM)


def decode_boot_info(token: str | None) -> BootInfo:
    """
    Verify and decode an X-Kompo-Info token.

    Raises:
        InvalidKompoInfo: If the token is missing, tampered or malformed
    """
    if not token:
        raise InvalidKompoInfo(f"Missing {INFO_HEADER} header.")
    try:
        payload = jwt.decode(token, settings.secret, algorithms=[settings.BOOT_INFO_ALGORITHM])
        return BootInfo.model_validate(payload)
    except jwt.InvalidTokenError as e:
        raise InvalidKompoInfo(f"Invalid {INFO_HEADER} header.") from e
    except ValidationError as e:
        raise InvalidKompoInfo(f"Malformed {INFO_HEADER} payload.") from e


def get_kompo(request: KompoRequest) -> BootInfo:
    """BootInfo of the request being dispatched."""
    return decode_boot_info(request.header(INFO_HEADER))
