"""Storage size validation for claim requests."""

from decimal import Decimal

from kubernetes.utils.quantity import parse_quantity

from persi_broker.errors import InvalidQuantityError


def parse_size(text: str) -> tuple[str, Decimal]:
    """Validate a storage size such as ``1Gi`` or ``500M``.

    Returns:
        The size as it goes into the claim request, and its value in bytes.

    Raises:
        InvalidQuantityError: If the size is malformed or not positive.
    """
    size = text.strip()
    if any(c.isspace() for c in size):
        raise InvalidQuantityError(f"invalid quantity string {text!r}")
    try:
        value = parse_quantity(size)
    except (ValueError, ArithmeticError) as e:
        raise InvalidQuantityError(f"invalid quantity string {text!r}: {e}") from e

    if not value.is_finite() or value <= 0:
        raise InvalidQuantityError(f"storage size must be a positive quantity, got {text!r}")
    return size, value
