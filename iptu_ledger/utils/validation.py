"""Argument checks shared by services and selectors."""


def is_strict_int(value: object) -> bool:
    """True for ints; bools are rejected even though they subclass int."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_positive_int(value: object) -> bool:
    return is_strict_int(value) and value > 0
