"""
File Utilities - Common file handling functions
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union
import logging
import chardet

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def detect_file_encoding(file_path: PathLike) -> str:
    """
    Detect the encoding of a text file

    Args:
        file_path: Path to the file

    Returns:
        Detected encoding name
    """
    try:
        with open(file_path, 'rb') as f:
            raw_data = f.read(10000)  # Read first 10KB
            result = chardet.detect(raw_data)
            encoding = result.get('encoding') or 'utf-8'
            confidence = result.get('confidence') or 0

            logger.debug(f"Detected encoding for {file_path}: {encoding} (confidence: {confidence:.2f})")

            # Plain ASCII JSON is valid UTF-8, and low confidence guesses are worse than the default
            if confidence < 0.5 or encoding.lower() == 'ascii':
                return 'utf-8'

            return encoding
    except OSError as e:
        logger.warning(f"Error detecting encoding for {file_path}: {e}")
        return 'utf-8'


def safe_read_text_file(file_path: PathLike, encoding: Optional[str] = None) -> str:
    """
    Read a text file with encoding detection

    Args:
        file_path: Path to the file
        encoding: Specific encoding to use (optional)

    Returns:
        File contents as string
    """
    if not encoding:
        encoding = detect_file_encoding(file_path)

    try:
        with open(file_path, 'r', encoding=encoding) as f:
            return f.read()
    except (UnicodeDecodeError, LookupError):
        fallback_encodings = ['utf-8', 'utf-8-sig', 'latin-1']

        for fallback in fallback_encodings:
            if fallback != encoding:
                try:
                    with open(file_path, 'r', encoding=fallback) as f:
                        logger.warning(f"Used fallback encoding {fallback} for {file_path}")
                        return f.read()
                except UnicodeDecodeError:
                    continue

        # Last resort: ignore errors
        with open(file_path, 'r', encoding='utf-8', errors='ignore') as f:
            logger.warning(f"Reading {file_path} with error handling")
            return f.read()


def atomic_write_bytes(file_path: PathLike, data: bytes):
    """
    Write a file so readers never observe a half-written state

    Raises:
        OSError: if the directory cannot be created or the write fails
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, 'wb') as tmp_file:
            tmp_file.write(data)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def atomic_write_text(file_path: PathLike, text: str, encoding: str = 'utf-8'):
    atomic_write_bytes(file_path, text.encode(encoding))


def clean_filename(filename: str) -> str:
    """
    Clean a filename to make it safe for file system

    Args:
        filename: Original filename

    Returns:
        Cleaned filename
    """
    # Remove or replace invalid characters
    invalid_chars = '<>:"/\\|?*'
    cleaned = filename

    for char in invalid_chars:
        cleaned = cleaned.replace(char, '_')

    # Remove leading/trailing spaces and dots
    cleaned = cleaned.strip(' .')

    # Limit length
    if len(cleaned) > 200:
        cleaned = cleaned[:200]

    return cleaned or "untitled"
