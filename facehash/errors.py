"""
Exception types raised by the identity matching engine.

A search that finds no acceptable candidate returns ``None``; that is a
normal outcome, not an error.
"""


class FaceHashError(Exception):
    """Base class for all engine errors."""


class InvalidImage(FaceHashError, ValueError):
    """Image is empty, has an unsupported layout, or cannot be decoded."""


class LengthMismatch(FaceHashError, ValueError):
    """Two fingerprints of different bit lengths were compared."""

    def __init__(self, length_a: int, length_b: int):
        super().__init__(
            f"Fingerprint lengths must match: {length_a} vs {length_b}"
        )
        self.length_a = length_a
        self.length_b = length_b


class DuplicateName(FaceHashError, ValueError):
    """An identity name was registered more than once."""

    def __init__(self, name: str):
        super().__init__(f"Identity already registered: {name!r}")
        self.name = name


class UnknownIdentity(FaceHashError, KeyError):
    """An operation referenced a name that was never registered."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown identity: {self.name!r}"
