"""
Message status reconciler.

Pure functions that turn the collected provider outcomes into the final
message status and error map.

Rules:
- errors holds every provider whose outcome is a Failure, or a Success
  without images ("No images generated")
- completed: at least one image and no errors
- partial: at least one image and at least one error
- failed: no images at all

Dependencies: imagecraft.core.generation.outcomes
System role: Final status computation at settlement
"""

from dataclasses import dataclass, field
from typing import Mapping

from imagecraft.boundary.db.models.chat_message_model import MessageStatus
from imagecraft.core.generation.outcomes import (
    NO_IMAGES_GENERATED,
    Failure,
    ProviderOutcome,
    Success,
)


@dataclass(frozen=True)
class Reconciliation:
    """Final status and provider -> error text."""

    status: MessageStatus
    errors: dict[str, str] = field(default_factory=dict)
    image_count: int = 0


def reconcile(outcomes: Mapping[str, ProviderOutcome]) -> Reconciliation:
    """
    Compute aggregate status from per-provider outcomes.

    Args:
        outcomes: Provider name -> Success or Failure

    Returns:
        Reconciliation with status, errors and total image count
    """
    errors: dict[str, str] = {}
    image_count = 0

    for provider, outcome in outcomes.items():
        if isinstance(outcome, Success) and outcome.has_images:
            image_count += len(outcome.image_refs)
        elif isinstance(outcome, Success):
            errors[provider] = NO_IMAGES_GENERATED
        elif isinstance(outcome, Failure):
            errors[provider] = outcome.message
        else:
            raise TypeError(f"Unsupported outcome for {provider}: {outcome!r}")

    if image_count == 0:
        status = MessageStatus.FAILED
    elif errors:
        status = MessageStatus.PARTIAL
    else:
        status = MessageStatus.COMPLETED

    return Reconciliation(status=status, errors=errors, image_count=image_count)

