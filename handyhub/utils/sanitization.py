import html
import re
from typing import Optional


def clean_text(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Trim, length-check and escape free text (notes, comments, reasons).

    Raises:
        ValueError: If input exceeds max_length
    """
    if value is None:
        return None

    value = str(value).strip()

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    value = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)

    return html.escape(value, quote=True)
