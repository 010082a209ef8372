"""Relative path handling for files exchanged with the server.

This module provides:
- Security validation to prevent path traversal through manifest names
- Resolution of manifest names to paths inside a local root

Security measures:
    - Path traversal prevention (no .. components)
    - Absolute paths and drive letters rejected
"""

from __future__ import annotations

from pathlib import Path


class SecurityError(Exception):
    """Path would escape the local root."""


def validate_path(path: str) -> str:
    """Validate and normalize a relative file path.

    Args:
        path: The path to validate

    Returns:
        Normalized path using forward slashes

    Raises:
        SecurityError: If path contains dangerous components
    """
    if not path:
        raise SecurityError("Path cannot be empty")

    normalized = path.replace("\\", "/")
    if normalized.startswith("/"):
        raise SecurityError("Absolute paths not allowed")

    sanitized_parts: list[str] = []
    for part in normalized.split("/"):
        if not part or part == ".":
            continue

        if part == "..":
            raise SecurityError("Path traversal detected: '..' not allowed")

        # Windows drive letters
        if len(part) == 2 and part[1] == ":" and part[0].isalpha():
            raise SecurityError("Absolute paths not allowed")

        sanitized_parts.append(part)

    if not sanitized_parts:
        raise SecurityError("Path resolves to empty")

    return "/".join(sanitized_parts)


def resolve_local_path(root: Path, relative_path: str) -> Path:
    """Resolve a manifest name to a path inside ``root``.

    Args:
        root: Local root directory
        relative_path: Name as reported by the server

    Returns:
        Absolute path below root

    Raises:
        SecurityError: If the name is unsafe
    """
    safe = validate_path(relative_path)
    return root.joinpath(*safe.split("/"))


def is_hidden(relative_parts: tuple[str, ...]) -> bool:
    """Check whether any component of a relative path is hidden."""
    return any(part.startswith(".") for part in relative_parts)
