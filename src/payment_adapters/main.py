"""
Connectivity check entry point.

Configures logging from settings, then runs a card verification against one
adapter and logs the normalized response. Adapters without ``verify`` get a
minimum authorization that is voided straight away.

Usage::

    payment-adapters-check [adapter]
    python -m payment_adapters.main commerce_hub

The adapter name defaults to ``mock``. Credentials come from the
``PAYMENT_ADAPTERS_*`` environment (see config.py).
"""

import asyncio
import sys
from datetime import date

from payment_adapters.adapters import GatewayAdapter, get_adapter
from payment_adapters.config import settings
from payment_adapters.logging_config import configure_logging, get_logger
from payment_adapters.models import CreditCard, GatewayError, Operation, Response

logger = get_logger(__name__)

CHECK_CARD_NUMBER = "4005550000000019"
CHECK_AMOUNT = 100


def check_card() -> CreditCard:
    return CreditCard(
        number=CHECK_CARD_NUMBER,
        month=12,
        year=date.today().year + 2,
        verification_value="123",
        first_name="Connectivity",
        last_name="Check",
    )


async def check(adapter: GatewayAdapter) -> Response:
    """
    Exercise one adapter end to end.

    Args:
        adapter: Adapter to check; it is closed afterwards

    Returns:
        Response of the verify (or authorize) call

    Raises:
        GatewayError: If the processor could not be reached or rejected the credentials
    """
    try:
        if adapter.supports(Operation.VERIFY):
            return await adapter.verify(check_card())

        response = await adapter.authorize(CHECK_AMOUNT, check_card())
        if response.success:
            void = await adapter.void(response.authorization)
            logger.info("connectivity_check_voided", success=void.success, message=void.message)
        return response
    finally:
        await adapter.aclose()


async def main(argv: list[str] | None = None) -> int:
    """Main application entry point; returns the process exit code."""
    configure_logging(log_level=settings.log_level, format_as_json=settings.log_json)

    args = sys.argv[1:] if argv is None else argv
    adapter_name = args[0] if args else "mock"

    try:
        adapter = get_adapter(adapter_name)
    except ValueError as e:
        logger.error("connectivity_check_misconfigured", adapter=adapter_name, error=str(e))
        return 2

    logger.info(
        "connectivity_check_starting",
        adapter=adapter.name,
        environment=settings.environment,
        test=adapter.test,
    )

    try:
        response = await check(adapter)
    except GatewayError as e:
        logger.error("connectivity_check_failed", adapter=adapter.name, error=str(e))
        return 1

    logger.info(
        "connectivity_check_finished",
        adapter=adapter.name,
        success=response.success,
        message=response.message,
        error_kind=response.error_kind.value,
    )
    return 0 if response.success else 1


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
