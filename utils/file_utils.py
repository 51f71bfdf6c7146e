from __future__ import annotations

import os
from pathlib import Path

__all__: list[str] = ["FileUtils", "FileUtilsError"]


class FileUtils:
    """Path helpers for user-supplied file locations."""

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-input path to an absolute path safely.

        Expands environment variables (e.g., $HOME, %APPDATA%), expands ~ to the home directory,
        and resolves relative paths based on the current working directory.

        Args:
            path (str | Path): The input path (e.g., "~/data/$APP_ENV/lingoflow.db").
            strict (bool): Whether to raise an exception if the path does not exist. Defaults to False.

        Returns:
            Path: The converted absolute `Path` object.
        """
        path_str = str(path)
        expanded: str = os.path.expandvars(path_str)
        user_expanded: Path = Path(expanded).expanduser()

        resolved_path: Path
        if user_expanded.is_absolute():
            resolved_path = user_expanded.resolve(strict=strict)
        else:
            resolved_path = (Path.cwd() / user_expanded).resolve(strict=strict)
        return resolved_path

    @staticmethod
    def ensure_parent_dir(file_path: Path) -> Path:
        """Create the parent directory of a file if it does not exist yet.

        Raises:
            FileUtilsError: If the parent exists but is not a directory, or cannot be created.
        """
        parent: Path = file_path.parent
        if parent.exists() and not parent.is_dir():
            msg = f"Parent path is not a directory: {parent}"
            raise FileUtilsError(msg)
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            msg = f"Cannot create directory: {parent}"
            raise FileUtilsError(msg) from err
        return file_path


class FileUtilsError(Exception):
    """Custom exception for FileUtils-related errors."""
