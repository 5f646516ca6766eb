from __future__ import annotations


class ValidationError(Exception):
    pass


class HeaderListFormatError(ValidationError):
    pass


class HeaderValueFormatError(ValidationError):
    def __init__(self, header_name: str, value: str, expected: str) -> None:
        self.header_name = header_name
        self.value = value
        super().__init__(
            f"Invalid value for {header_name} header: {value!r}. "
            f"Please set the value in a format of {expected}"
        )
