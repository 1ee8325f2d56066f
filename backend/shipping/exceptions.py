"""
Exceptions raised by the shipping resolution and pricing engine.
"""


class ShippingError(Exception):
    """Base exception for shipping engine errors"""
    pass


class ConfigurationError(ShippingError):
    """Raised when reference data or engine settings cannot be loaded"""
    pass


class ValidationError(ShippingError):
    """Raised when reference data or purchase input fails validation"""
    pass


class UnknownLocationError(ShippingError):
    """Raised when a location is absent from the location hierarchy"""
    pass


class NotFoundError(ShippingError):
    """Raised when no candidate location contains the target location"""
    pass


class EmptyRangeSetError(ShippingError):
    """Raised when merging an empty set of delivery time ranges"""
    pass


class MissingPurchaseTotalError(ShippingError):
    """Raised when pricing is attempted without a purchase total"""
    pass


class MissingPaidDateError(ShippingError):
    """Raised when projecting shipping dates for an unpaid purchase"""
    pass


class MissingShipToError(ShippingError):
    """Raised when a shipment has no destination location"""
    pass


class CurrencyMismatchError(ShippingError):
    """Raised when adding money amounts in different currencies"""
    pass


class AmbiguousGroupMatchError(ShippingError):
    """Raised when several groups for one method are bound at the same location"""
    pass


class FxRateError(ShippingError):
    """Raised when no exchange rate is configured for a currency pair"""
    pass
