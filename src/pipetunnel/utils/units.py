"""Human-readable traffic units."""

KB = 1024
MB = 1024 * KB
GB = 1024 * MB


def format_bytes(n: int) -> str:
    """
    Scale a byte count to B/KB/MB/GB using 1024-based units.

    Bytes are printed as an integer, KB and MB with one decimal,
    GB with two decimals.

    Examples:
        >>> format_bytes(512)
        '512 B'
        >>> format_bytes(2048)
        '2.0 KB'
        >>> format_bytes(5_000_000)
        '4.8 MB'
    """
    if n < KB:
        return f"{n} B"
    if n < MB:
        return f"{n / KB:.1f} KB"
    if n < GB:
        return f"{n / MB:.1f} MB"
    return f"{n / GB:.2f} GB"
