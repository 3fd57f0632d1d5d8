def format_bytes(size: int) -> str:
    """Formats a byte count with binary units (e.g. '1.500 KiB')."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.3f} {'KMGTPE'[exp]}iB"


def chunk_count(file_size: int, chunk_size: int) -> int:
    """Number of chunks needed to cover file_size bytes."""
    if chunk_size <= 0:
        raise ValueError("Chunk size must be positive")
    return -(-file_size // chunk_size)


def join_remote_path(*parts: str) -> str:
    """Joins remote path segments with '/', dropping empty ones."""
    segments = []
    for part in parts:
        if not part:
            continue
        segments.extend(s for s in part.replace('\\', '/').split('/') if s and s != '.')
    return '/'.join(segments)
