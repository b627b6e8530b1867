import mimetypes
from pathlib import Path
from typing import Optional
import structlog

log = structlog.get_logger(__name__)

def get_language_hint(extension: Optional[str]) -> str:
    # provides a language hint for markdown code blocks based on file extension.
    if not extension:
        return ""
    ext = extension.lower().strip(".")
    ext_map = {
        "py": "python", "js": "javascript", "ts": "typescript", "java": "java",
        "c": "c", "h": "c", "cpp": "cpp", "hpp": "cpp", "cs": "csharp", "go": "go",
        "rb": "ruby", "php": "php", "swift": "swift", "kt": "kotlin", "rs": "rust",
        "scala": "scala", "sh": "bash", "md": "markdown", "json": "json",
        "yaml": "yaml", "yml": "yaml", "xml": "xml", "html": "html", "css": "css",
        "sql": "sql", "dockerfile": "dockerfile", "toml": "toml", "ini": "ini",
    }
    return ext_map.get(ext, ext)

AUDIO_MIME_FALLBACKS = {
    ".mp3": "audio/mpeg", ".wav": "audio/wav", ".ogg": "audio/ogg",
    ".m4a": "audio/mp4", ".flac": "audio/flac", ".webm": "audio/webm",
}

def guess_mime_type(path: str, fallback: str) -> str:
    # mimetypes first, then the audio table (platform mime databases vary), then the fallback.
    suffix = Path(path).suffix.lower()
    guessed: Optional[str] = mimetypes.guess_type(path)[0]
    if guessed:
        return guessed
    return AUDIO_MIME_FALLBACKS.get(suffix, fallback)
