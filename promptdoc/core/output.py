# promptdoc/core/output.py
"""Writes rendered documents to stdout, a file, or the clipboard."""
import sys
from pathlib import Path
import pyperclip  # type: ignore # for clipboard operations
import structlog

from promptdoc.exceptions import OutputError

log = structlog.get_logger(__name__)


def write_to_stdout(text_content: str):
    # writes text to standard output.
    try:
        sys.stdout.write(text_content)
        sys.stdout.flush()
    except UnicodeEncodeError as e:
        log.warning("stdout_write_failed_trying_binary_fallback", error=str(e))
        sys.stdout.buffer.write(text_content.encode("utf-8", errors="replace"))
        sys.stdout.buffer.flush()


def write_to_file(output_file_path: Path, text_content: str):
    """writes text content to the specified file path using utf-8 encoding."""
    log.info("writing_output_to_file", path=str(output_file_path))
    try:
        output_file_path.parent.mkdir(parents=True, exist_ok=True)
        output_file_path.write_text(text_content, encoding="utf-8")
        log.debug("output_successfully_written_to_file", path=str(output_file_path))
    except OSError as e:
        log.error("failed_to_write_output_file", path=str(output_file_path), error=str(e))
        raise OutputError(f"failed to write to file '{output_file_path}': {e}") from e


def copy_to_clipboard(text_content: str) -> bool:
    """
    copies text content to the system clipboard using pyperclip.
    returns true if successful, false otherwise; the caller decides on a fallback.
    """
    log.info("attempting_to_copy_output_to_clipboard")
    try:
        pyperclip.copy(text_content)
    except pyperclip.PyperclipException as e:
        log.warning(
            "clipboard_copy_failed_pyperclip_exception",
            error=str(e),
            note="ensure clipboard utility (xclip/pbcopy) is installed and accessible.",
        )
        return False
    log.info("successfully_copied_to_clipboard_via_pyperclip")
    return True
