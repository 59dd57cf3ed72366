def accept(retained: bool, ignore_retained: bool) -> bool:
    """Decide whether a message counts, given the retained-message policy."""
    return not (retained and ignore_retained)
