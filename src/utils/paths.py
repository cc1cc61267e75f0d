from pathlib import Path

SETTINGS_FILENAME = "stackpilot.yaml"
WORKSPACE_DIRNAME = "stackpilot"


def get_project_root(start: Path | None = None) -> Path:
    """Get the project root directory.

    Walks up from the starting directory (the current working directory by
    default) to find the project root, identified by the presence of
    stackpilot.yaml or a stackpilot/ workspace directory.

    Returns:
        Path to the project root directory
    """
    current = (start or Path.cwd()).resolve()

    # Walk up the directory tree looking for a workspace marker
    for parent in [current, *current.parents]:
        if (parent / SETTINGS_FILENAME).is_file():
            return parent
        if (parent / WORKSPACE_DIRNAME).is_dir():
            return parent

    # Not inside a workspace; commands operate relative to where they were run
    return current
