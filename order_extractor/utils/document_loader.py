from pathlib import Path

from ..exceptions import DocumentLoadError


def load_text(filename: str | Path) -> str:
    """Load document text that an upstream decoder already produced.

    Args:
        filename: Path to a UTF-8 text file

    Returns:
        The file content

    Raises:
        DocumentLoadError: If the file is missing, empty or not UTF-8

    """
    filepath = Path(filename)

    if not filepath.exists():
        raise DocumentLoadError(f"File not found: {filepath}")

    if not filepath.is_file():
        raise DocumentLoadError(f"Not a file: {filepath}")

    if filepath.stat().st_size == 0:
        raise DocumentLoadError(f"Empty file: {filepath}")

    try:
        with open(filepath, encoding="utf-8") as f:
            content = f.read()
    except UnicodeDecodeError:
        raise DocumentLoadError(f"Unable to decode file (not UTF-8): {filepath}") from None

    if not content.strip():
        raise DocumentLoadError(f"File contains only whitespace: {filepath}")

    return content


PAGE_BREAK = "\f"


def split_pages(text: str) -> list[tuple[int, str]]:
    """Split text on form feeds into numbered pages, skipping blank pages.

    Returns:
        (1-based page number, page text) pairs
    """
    return [
        (number, page)
        for number, page in enumerate(text.split(PAGE_BREAK), 1)
        if page.strip()
    ]
