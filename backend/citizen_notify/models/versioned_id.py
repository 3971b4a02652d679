"""
Versioned document ids.

A physical document id has the format ``<modelId>-<version>``, the version
zero-padded to 16 digits (the length of 2**53 - 1, the largest version a
DocumentDB client can represent exactly). Padding makes the ids of one
logical entity sort lexicographically in version order.

Logical ids must not themselves end in ``-`` followed by 16 digits; this is
a caller contract and is not checked here.
"""

from typing import Tuple

from citizen_notify.exceptions import ValidationError

VERSION_SEPARATOR = "-"
VERSION_PADDING = 16
MAX_VERSION = 2**53 - 1


def validate_version(version: int) -> int:
    # bool is an int subclass but never a version
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValidationError(
            f"Version must be an integer, got {type(version).__name__}",
            field="version",
        )
    if version < 0 or version > MAX_VERSION:
        raise ValidationError(
            f"Version must be between 0 and {MAX_VERSION}, got {version}",
            field="version",
        )
    return version


def generate_versioned_model_id(model_id: str, version: int) -> str:
    """
    Returns the physical id of `version` of the entity `model_id`.

    >>> generate_versioned_model_id("FRLFRC74E04B157I", 1)
    'FRLFRC74E04B157I-0000000000000001'
    """
    if not isinstance(model_id, str) or not model_id:
        raise ValidationError("Model id must be a non-empty string", field="model_id")
    validate_version(version)
    return f"{model_id}{VERSION_SEPARATOR}{version:0{VERSION_PADDING}d}"


def parse_versioned_model_id(versioned_id: str) -> Tuple[str, int]:
    """
    Splits a physical id back into (model_id, version).

    Raises ValidationError when the suffix is not exactly 16 decimal digits
    or the model id part is empty.
    """
    model_id, separator, padded = versioned_id.rpartition(VERSION_SEPARATOR)
    if (
        not separator
        or not model_id
        or len(padded) != VERSION_PADDING
        or not (padded.isascii() and padded.isdigit())
    ):
        raise ValidationError(
            f"'{versioned_id}' is not a versioned document id",
            field="id",
        )
    return model_id, validate_version(int(padded))
