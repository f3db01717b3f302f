"""
Copy Action
===========
Hands a button's payload to a clipboard sink. The sink is any callable
taking the text; placing it on the system clipboard is the caller's job.

An empty payload is reported as a warning and nothing is copied.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import ButtonDirective, CopyOutcome, CopyStatus, ScanResult

logger = logging.getLogger(__name__)

ClipboardSink = Callable[[str], None]


def find_button(result: ScanResult, text: str) -> Optional[ButtonDirective]:
    """First button whose display text equals ``text``."""
    wanted = text.strip()
    for button in result.buttons:
        if button.text == wanted:
            return button
    return None


def copy_payload(button: ButtonDirective, sink: ClipboardSink) -> CopyOutcome:
    """Copy one button's payload through ``sink``."""
    logger.info(f'Copying "{button.text}"')

    if not button.payload:
        logger.warning(f'Text to copy for "{button.text}" is empty')
        return CopyOutcome(
            status=CopyStatus.EMPTY_PAYLOAD,
            button_text=button.text,
            message="Warning: No text found to copy.",
        )

    try:
        sink(button.payload)
    except Exception as e:
        logger.error(f'Error copying "{button.text}" to clipboard: {e}')
        return CopyOutcome(
            status=CopyStatus.FAILED,
            button_text=button.text,
            message=f"Error copying to clipboard: {e}",
        )

    logger.debug(f"Copied {len(button.payload)} characters")
    return CopyOutcome(
        status=CopyStatus.COPIED,
        button_text=button.text,
        message=f'Copied "{button.text}" to clipboard!',
    )
