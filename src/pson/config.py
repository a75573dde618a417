"""Encoder configuration.

This module provides the Pydantic model for encoder options, shared
between library callers and the CLI.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class EncoderConfig(BaseModel):
    """Options controlling how values are encoded.

    Attributes:
        strict: Raise UnsupportedValueError for values that would
            otherwise degrade silently (unsupported types, integers
            outside the signed 64-bit range).
        integral_floats_as_integers: Encode finite floats with an exact
            integer value (e.g. 7.0) as integer nodes.
        max_dictionary_size: Upper bound on dictionary entries. Once
            reached, unseen keys are emitted literally. None means
            unbounded.

    Example:
        >>> config = EncoderConfig(strict=True)
        >>> encoder = Encoder(config=config)
    """

    strict: bool = Field(
        default=False,
        description="Raise on unencodable values instead of emitting null",
    )
    integral_floats_as_integers: bool = Field(
        default=True,
        description="Encode integral floats as integer nodes",
    )
    max_dictionary_size: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum number of dictionary entries (None = no limit)",
    )

    model_config = {"frozen": True}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncoderConfig":
        """Create config from a dictionary, ignoring None values.

        Convenient for CLI options where unset flags arrive as None.

        Args:
            data: Dictionary of option values.

        Returns:
            Validated EncoderConfig instance.

        Raises:
            ValueError: If validation fails.
        """
        return cls(**{k: v for k, v in data.items() if v is not None})
