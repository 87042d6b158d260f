"""
Formatting utilities for human-readable console output.

Durations, memory sizes and counted nouns for run summaries.
"""


def elapsedTime(t):
    """
    Format a duration in seconds using the most appropriate unit.

    Example:
        elapsedTime(0.05) -> "   50 ms"
        elapsedTime(125.5) -> "2.092 m"
    """
    if t < 1.0:
        return "%5.4g ms" % (t * 1000.0)
    elif t < 60.0:
        return "%5.4g s" % (t)
    elif t < 3600.0:
        return "%5.4g m" % (t / 60.0)
    else:
        return "%5.4g h" % (t / 3600.0)


def memorySize(sz):
    """
    Format a size in bytes using the most appropriate binary unit.

    Example:
        memorySize(512) -> "  512 B"
        memorySize(1048576) -> "    1 MB"
    """
    fsz = float(sz)
    for unit, scale in (("B", 1), ("KB", 1024), ("MB", 1024**2), ("GB", 1024**3)):
        if sz < scale * 1024:
            if unit == "B":
                return "%5g B" % fsz
            return "%5.4g %s" % (fsz / scale, unit)
    return "%5.4g TB" % (fsz / (1024**4))


def plural(count, noun, suffix="s"):
    """plural(1, "note") -> "1 note"; plural(3, "note") -> "3 notes"."""
    return "%d %s%s" % (count, noun, "" if count == 1 else suffix)
