"""Fixed-length numeric code editor state (digits + which cell has focus)."""

import re

_NON_DIGIT = re.compile(r"\D")


class OtpInput:
    """Six single-digit cells with the focus rules of the code entry widget.

    Only local state; callers render `digits` and move the caret to `focus`.
    """

    def __init__(self, length: int = 6):
        self.length = length
        self.digits: list[str] = [""] * length
        self.focus = 0

    @property
    def code(self) -> str:
        return "".join(self.digits)

    @property
    def is_complete(self) -> bool:
        return len(self.code) == self.length

    def clear(self) -> None:
        self.digits = [""] * self.length
        self.focus = 0

    def change(self, index: int, value: str) -> None:
        """Apply an input event on cell `index` (a keystroke or a paste)."""
        self._check_index(index)

        if len(value) > 1:
            pasted = _NON_DIGIT.sub("", value)[: self.length]
            for offset, digit in enumerate(pasted):
                if index + offset < self.length:
                    self.digits[index + offset] = digit
            self.focus = min(index + len(pasted), self.length - 1)
            return

        digit = _NON_DIGIT.sub("", value)
        self.digits[index] = digit
        if digit and index < self.length - 1:
            self.focus = index + 1

    def key_down(self, index: int, key: str) -> None:
        """Backspace on an empty cell steps back without erasing the previous one."""
        self._check_index(index)
        if key == "Backspace" and not self.digits[index] and index > 0:
            self.focus = index - 1

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.length:
            raise IndexError(f"OTP cell {index} out of range 0..{self.length - 1}")
