"""Cascading receipt extraction across an ordered list of providers.

The primary heuristic pipeline is usually first; a secondary extractor
(a cloud vision or LLM-backed service, for example) can follow. The first
result whose confidence clears the floor is accepted. When none does, the
receipt is handed back flagged for manual entry.
"""

from collections.abc import Callable, Sequence

from orgintel.utils.logger import get_logger

from .models import ReceiptData, invalid_receipt

logger = get_logger(__name__)

ExtractionProvider = Callable[[str | bytes], ReceiptData]

MANUAL_PROVIDER = "manual"
MANUAL_ENTRY_NOTE = (
    "Automatic extraction confidence is too low. "
    "Please enter the receipt details manually."
)


def needs_manual_review(receipt: ReceiptData, threshold: float = 0.4) -> bool:
    """Return True if a receipt is too uncertain to accept automatically."""
    return receipt.confidence_score < threshold


class ProviderChain:
    """Chain of responsibility over receipt extraction providers.

    Args:
        providers: Callables taking the image payload and returning a
            ``ReceiptData``, tried in order.
        confidence_floor: Minimum ``confidence_score`` for a result to be
            accepted.

    Raises:
        ValueError: If no providers are given.
    """

    def __init__(
        self,
        providers: Sequence[ExtractionProvider],
        confidence_floor: float = 0.4,
    ) -> None:
        if not providers:
            raise ValueError("ProviderChain requires at least one provider")
        self.providers = list(providers)
        self.confidence_floor = confidence_floor

    def extract(self, image: str | bytes) -> ReceiptData:
        """Try each provider in turn and return the first confident result.

        Args:
            image: Receipt image payload passed unchanged to every provider.

        Returns:
            The first accepted receipt, or a manual-entry receipt.
        """
        for provider in self.providers:
            name = getattr(provider, "provider_name", type(provider).__name__)
            try:
                result = provider(image)
            except Exception as exc:
                logger.warning("Provider %s failed, trying next: %s", name, exc)
                continue

            if not needs_manual_review(result, self.confidence_floor):
                logger.info(
                    "Accepted %s result (confidence %.2f)", name, result.confidence_score
                )
                return result

            logger.warning(
                "Provider %s confidence %.2f below %.2f",
                name,
                result.confidence_score,
                self.confidence_floor,
            )

        logger.warning("All providers below confidence floor, requesting manual entry")
        return invalid_receipt(provider=MANUAL_PROVIDER, notes=MANUAL_ENTRY_NOTE)
