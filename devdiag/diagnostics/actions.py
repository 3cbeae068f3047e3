"""Execution of user-triggered remediation actions."""

from typing import Callable, Optional

from .models import ActionKind, RemediationAction, Severity
from .panel import PanelEntry, PanelHandle
from ..network import NetworkPlatform
from ..utils import get_logger

logger = get_logger(__name__)


def perform_action(
    action: RemediationAction,
    platform: NetworkPlatform,
    panel: PanelHandle,
    run_id: str,
    rerun: Optional[Callable[[], None]] = None
) -> bool:
    """
    Carry out one action. Never raises; failures are logged.

    Args:
        action: The action the user picked
        platform: Clipboard and browser capabilities
        panel: Panel that receives confirmation entries
        run_id: Run the action's button belongs to
        rerun: Callback that starts a new run, for RERUN actions

    Returns:
        True if the action completed
    """
    logger.info(f"Action: {action.label}")

    try:
        if action.kind is ActionKind.COPY:
            platform.write_clipboard(action.payload)
            if "\n" in action.payload:
                title = "Checklist copied to clipboard"
            else:
                title = f"Copied: {action.payload}"
            panel.append(run_id, PanelEntry(
                Severity.INFO, title, action.hint or "Paste into a terminal or notes."
            ))
        elif action.kind is ActionKind.OPEN:
            platform.open_external(action.payload)
        elif action.kind is ActionKind.NOTE:
            panel.append(run_id, PanelEntry(
                Severity.INFO, action.note_title or action.label, action.payload
            ))
        elif action.kind is ActionKind.RERUN:
            if rerun is None:
                logger.warning("Rerun requested but no rerun handler is attached")
                return False
            rerun()
        else:
            logger.warning(f"Unknown action kind: {action.kind}")
            return False
    except Exception as e:
        logger.error(f"Action '{action.label}' failed: {e}")
        return False

    return True
