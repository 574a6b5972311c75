"""Drop build artifacts, lock files and binary/media files from a file listing."""

from typing import Iterable, TypeVar

from ..models import FileRecord

F = TypeVar("F", bound=FileRecord)

# Binary/media extensions that carry nothing a language model can summarise.
_EXCLUDED_EXTENSIONS: frozenset[str] = frozenset({
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".tif", ".webp",
    ".ico", ".svg", ".heic", ".heif", ".avif", ".psd",
    # Video
    ".mp4", ".mov", ".avi", ".mkv", ".webm", ".flv", ".wmv", ".m4v",
    ".mpeg", ".mpg",
    # Audio
    ".mp3", ".wav", ".aac", ".flac", ".ogg", ".m4a", ".wma", ".aiff",
    # Fonts
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    # Archives / compressed
    ".zip", ".tar", ".gz", ".bz2", ".xz", ".7z", ".rar", ".tgz", ".iso",
    # Compiled / executables
    ".exe", ".dll", ".so", ".dylib", ".o", ".obj", ".pyc", ".class", ".jar",
    ".bin", ".dmg",
})

# Lock files matched by exact file name; any "*.lock" is excluded as well.
_EXCLUDED_FILE_NAMES: frozenset[str] = frozenset({
    "package-lock.json",
    "pnpm-lock.yaml",
})

# Build output and dependency directories, matched against any path segment.
_EXCLUDED_FOLDERS: frozenset[str] = frozenset({
    "dist",
    "node_modules",
})


def is_excluded_path(path: str) -> bool:
    """Return True if ``path`` matches the denylist."""
    if not path or not path.strip():
        return False
    parts = [p for p in path.strip().replace("\\", "/").split("/") if p]
    if not parts:
        return False
    name = parts[-1]
    if any(part in _EXCLUDED_FOLDERS for part in parts[:-1]):
        return True
    if name in _EXCLUDED_FILE_NAMES or name.endswith(".lock"):
        return True
    ext = "." + name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return ext in _EXCLUDED_EXTENSIONS


def filter_files(files: Iterable[F]) -> list[F]:
    """Return the files whose path is not denylisted, preserving order."""
    return [f for f in files if not is_excluded_path(f.path)]
