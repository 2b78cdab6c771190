from __future__ import annotations

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("identifiers are allocated from non-negative counters")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


class IdentifierAllocator:
    def __init__(self) -> None:
        self._next = 0

    def next_id(self) -> str:
        ident = f"e{to_base36(self._next)}"
        self._next += 1
        return ident

    def module_id(self) -> str:
        return self.next_id()

    def export_name(self) -> str:
        return f"export_{self.next_id()}"

    @property
    def allocated(self) -> int:
        return self._next
