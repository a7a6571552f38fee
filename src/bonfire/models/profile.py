"""Errors for operations that edit the own profile."""

from __future__ import annotations

from bonfire.client.specialization import RootCodeError


class SetProfileTextError(RootCodeError):
    """Errors that can occur while setting a status or description."""


class TextTooLongError(SetProfileTextError):
    def __init__(self) -> None:
        super().__init__("Text is too long")


SetProfileTextError.codes = {"E_BAD_SIZE": TextTooLongError}


class SetAgeError(RootCodeError):
    pass


class InvalidAgeError(SetAgeError):
    """The age is out of the range the server accepts."""

    def __init__(self) -> None:
        super().__init__("Invalid age")


SetAgeError.codes = {"E_BAD_AGE": InvalidAgeError}


class SetProfileImageError(RootCodeError):
    """Errors that can occur while setting an avatar or a background."""


class ImageTooLargeError(SetProfileImageError):
    """The image file exceeds the server's size limit."""

    def __init__(self) -> None:
        super().__init__("Image size exceeded")


class ImageDimensionsTooHighError(SetProfileImageError):
    """The image width or height exceeds the server's limit."""

    def __init__(self) -> None:
        super().__init__("Image dimensions are too high")


SetProfileImageError.codes = {
    "E_BAD_IMG_WEIGHT": ImageTooLargeError,
    "E_BAD_IMG_SIDES": ImageDimensionsTooHighError,
}
