import argparse
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from pdf_markup.core.errors import SaveError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Limits and filters
DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB
MAX_FILE_SIZE = DEFAULT_MAX_FILE_SIZE
ALLOWED_EXTENSIONS = [".pdf"]
TEMP_SUFFIX = ".tmp"

# Default accessible directories (used when no args are provided)
DEFAULT_SEARCH_DIRECTORIES = [
    os.path.expanduser("~/Downloads"),
    os.path.expanduser("~/Desktop"),
    os.path.expanduser("~/Documents"),
    os.getcwd(),
]

# Actual configured directories (initialized at runtime)
SEARCH_DIRECTORIES: List[str] = []


def parse_arguments(argv: Optional[List[str]] = None):
    """Command-line options: writable PDF roots, size cap and log level."""
    parser = argparse.ArgumentParser(
        description=(
            "PDF Markup MCP Server. Tools may read and rewrite PDFs only inside "
            "the given directories; edits are saved in place unless a destination is named."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "\nExamples:\n"
            "  pdf-markup-mcp ~/Papers\n"
            "  pdf-markup-mcp ~/Papers --allow-dir ~/Reviews/annotated\n"
            "  pdf-markup-mcp ~/Scans --max-file-size 20971520 --log-level DEBUG\n"
        ),
    )
    parser.add_argument(
        "directories",
        nargs="*",
        help="Directories whose PDFs may be read and annotated",
    )
    parser.add_argument(
        "--allow-dir",
        action="append",
        dest="allowed_dirs",
        metavar="DIR",
        help="One more readable and writable directory; repeatable",
    )
    parser.add_argument(
        "--max-file-size",
        type=int,
        default=DEFAULT_MAX_FILE_SIZE,
        metavar="BYTES",
        help="Refuse source PDFs larger than this (default: 100MB)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def _inside(root: str, candidate: str) -> bool:
    """True when `candidate` is `root` or lies below it, after resolving symlinks."""
    root = os.path.realpath(root)
    candidate = os.path.realpath(candidate)
    try:
        return os.path.commonpath([root, candidate]) == root
    except ValueError:
        # different drives on Windows
        return False


def setup_search_directories(args) -> None:
    """Configure SEARCH_DIRECTORIES and MAX_FILE_SIZE from parsed args.
    Falls back to DEFAULT_SEARCH_DIRECTORIES when none are provided.
    """
    global MAX_FILE_SIZE

    MAX_FILE_SIZE = int(args.max_file_size)

    provided: List[str] = []
    if getattr(args, "directories", None):
        provided.extend(args.directories)
    if getattr(args, "allowed_dirs", None):
        provided.extend(args.allowed_dirs)

    validated: List[str] = []
    for d in provided:
        try:
            real_path = os.path.realpath(os.path.abspath(os.path.expanduser(d)))
            if not os.path.exists(real_path):
                logger.info(f"Creating directory: {real_path}")
                os.makedirs(real_path, exist_ok=True)
            if not os.path.isdir(real_path):
                logger.warning(f"Not a directory, skipped: {d} -> {real_path}")
                continue
            if not os.access(real_path, os.R_OK | os.W_OK):
                logger.warning(f"Directory not readable and writable, skipped: {d} -> {real_path}")
                continue
            validated.append(real_path)
        except OSError as e:
            logger.error(f"Failed to process directory '{d}': {e}")

    if not validated:
        if provided:
            logger.warning("No valid directories from arguments; falling back to defaults.")
        else:
            logger.info("Using default accessible directories.")
        validated = [os.path.realpath(os.path.abspath(os.path.expanduser(d))) for d in DEFAULT_SEARCH_DIRECTORIES]

    # mutate in place so other modules see the update
    SEARCH_DIRECTORIES.clear()
    SEARCH_DIRECTORIES.extend(validated)


def _check_location(file_path: str) -> Optional[Path]:
    """Absolute real path of `file_path` if it lies inside an allowed directory and has a PDF extension."""
    abs_path = os.path.expanduser(file_path) if file_path.startswith("~") else os.path.abspath(file_path)
    real_path = os.path.realpath(abs_path)

    # Must be within one of the allowed directories; block traversal
    is_safe = any(_inside(allowed, real_path) for allowed in SEARCH_DIRECTORIES)
    if not is_safe or ".." in Path(file_path).parts:
        logger.warning(f"Security risk detected (outside allowed directories): {file_path}")
        return None

    resolved = Path(real_path)
    if resolved.suffix.lower() not in ALLOWED_EXTENSIONS:
        logger.warning(f"Disallowed file extension: {file_path}")
        return None
    return resolved


def validate_and_resolve_path(file_path: str) -> Optional[Path]:
    """Validate an existing source PDF and return its absolute Path if allowed and safe."""
    resolved = _check_location(file_path)
    if resolved is None or not resolved.is_file():
        return None
    if resolved.stat().st_size > MAX_FILE_SIZE:
        logger.warning(f"File too large: {file_path}")
        return None
    return resolved


def validate_destination(file_path: str) -> Optional[Path]:
    """Validate a write target. It may not exist yet, but its folder must."""
    resolved = _check_location(file_path)
    if resolved is None:
        return None
    if not resolved.parent.is_dir():
        logger.warning(f"Destination folder does not exist: {resolved.parent}")
        return None
    return resolved


def find_file(file_name: str) -> Optional[Path]:
    """Resolve an absolute path, or a name relative to one of the configured directories."""
    if os.path.isabs(file_name) or file_name.startswith("~"):
        return validate_and_resolve_path(file_name)

    for directory in SEARCH_DIRECTORIES:
        path = validate_and_resolve_path(str(Path(directory) / file_name))
        if path:
            return path

    logger.warning(f"File not found: {file_name}")
    return None


# --- In-place saves ---
# Writes never target the source directly: the edit lands in `<source>.tmp`,
# which then replaces the source or is thrown away.

def temp_path_for(source: Path) -> Path:
    return source.with_name(source.name + TEMP_SUFFIX)


def commit_temp(temp_path: Path, source: Path) -> None:
    """Atomically move a finished temporary file over its source.

    On failure the temporary file is removed and the source is left as it was.
    """
    try:
        os.replace(temp_path, source)
    except OSError as e:
        logger.error(f"Replacing {source} with {temp_path} failed: {e}")
        discard_temp(temp_path)
        raise SaveError(f"Failed to replace original file: {e}") from e
    logger.debug(f"Replaced {source} with {temp_path}")


def discard_temp(temp_path: Path) -> None:
    try:
        temp_path.unlink()
    except FileNotFoundError:
        pass


def write_in_place(
    source: Path,
    operation: Callable[[Path], T],
    changed: Callable[[T], bool] = bool,
) -> T:
    """Run `operation(temp_path)` and swap the result over `source` if `changed` says it wrote."""
    temp_path = temp_path_for(source)
    try:
        result = operation(temp_path)
    except BaseException:
        discard_temp(temp_path)
        raise
    if changed(result):
        commit_temp(temp_path, source)
    else:
        discard_temp(temp_path)
    return result
