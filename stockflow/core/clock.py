from datetime import date


def today() -> date:
    """Business date used by every "not in the future" rule."""
    return date.today()
