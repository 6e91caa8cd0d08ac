"""Path validation for files read or written by the import tools."""

import os
from pathlib import Path
from typing import Any


def get_project_root() -> str:
    """Get project root from environment or default.

    Returns:
        Project root directory path from MCP_FILE_ROOT environment variable,
        or current directory as fallback
    """
    return os.getenv("MCP_FILE_ROOT", ".")


def validate_file_path(file_path: str, project_root: str) -> dict[str, Any]:
    """Validate that a file path stays inside the project root.

    Args:
        file_path: File path to validate, absolute or relative to project_root
        project_root: Root directory of the project

    Returns:
        Dictionary with validation result and error message if invalid
    """
    try:
        project_path = Path(project_root).resolve()
        path = Path(file_path)

        if path.is_absolute():
            abs_path = path.resolve()
        else:
            abs_path = (project_path / path).resolve()

        try:
            abs_path.relative_to(project_path)
        except ValueError:
            return {"valid": False, "error": f"File path outside project root: {file_path}"}

        return {"valid": True, "abs_path": abs_path}

    except (OSError, RuntimeError) as e:
        return {"valid": False, "error": f"Invalid file path: {str(e)}"}


def resolve_project_file(file_path: str, project_root: str, must_exist: bool = True) -> str:
    """Absolute path of a project file.

    Raises:
        ValueError: If the path leaves the project root or does not exist
    """
    if not file_path:
        raise ValueError("File path cannot be empty")

    validation = validate_file_path(file_path, project_root)
    if not validation["valid"]:
        raise ValueError(validation["error"])

    abs_path = str(validation["abs_path"])
    if must_exist and not os.path.isfile(abs_path):
        raise ValueError(f"File not found: {file_path}")
    return abs_path
