from collections.abc import Sequence


class InvalidArgument(ValueError):
    """Command-line arguments are missing or inconsistent; nothing was touched."""
    pass


def require_arguments(values: Sequence, minimum: int, message: str):
    if len(values) < minimum:
        raise InvalidArgument(message)


def default_to_namespace(prefixes: Sequence[str]) -> list[str]:
    """No prefix selects the whole namespace."""
    return list(prefixes) if prefixes else ['']
