# utils.py

USED_COLOR = "#1976d2"
FREE_COLOR = "#e3f2fd"


def get_color(allocated):
    """Return a color for allocated/free blocks."""
    return USED_COLOR if allocated else FREE_COLOR


def utilization_color(util):
    """Color of the utilization bar: green when busy, red when mostly idle."""
    if util >= 80:
        return "#388e3c"
    elif util >= 50:
        return "#f57c00"
    return "#d32f2f"
