import re
from pathlib import Path

NON_CODE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".lock",  # e.g. package-lock.json, Pipfile.lock
}

_OPENING_FENCE_RE = re.compile(r"^```[a-z0-9_+-]*\n", re.IGNORECASE)
_CLOSING_FENCE_RE = re.compile(r"\n```$")


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_CODE_EXTENSIONS)


def read_source_file(path: str) -> str:
    """Return a file's full text for loading into the editor.

    Binary assets are refused; undecodable bytes in text files are replaced.
    """
    p = Path(path)
    if not is_code_file(p.name):
        raise ValueError(f"{p.name} does not look like a source file.")
    return p.read_bytes().decode("utf-8", errors="replace")


def strip_code_fence(code: str) -> str:
    """Remove a markdown fence wrapped around a whole file, then trim.

    Only the outermost ```lang ... ``` pair is stripped; fences inside the
    code are left alone.
    """
    cleaned = _OPENING_FENCE_RE.sub("", code.strip(), count=1)
    cleaned = _CLOSING_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def number_lines(code: str) -> str:
    """Prefix each line with its 1-based number so the model can cite lines."""
    return "\n".join(f"{i}: {line}" for i, line in enumerate(code.split("\n"), 1))
