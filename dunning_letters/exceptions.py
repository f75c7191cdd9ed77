"""Exceptions raised while composing dunning letters"""


class DunningError(Exception):
    """Base exception for letter generation"""

    pass


class InvalidTenantError(DunningError):
    """Tenant is missing or has no usable ledger data"""

    pass


class LedgerLayoutError(DunningError):
    """The ledger table could not be laid out"""

    pass


class AssetError(DunningError):
    """A remote image could not be fetched or decoded"""

    pass


class InvalidFeeError(DunningError, ValueError):
    """A fee override is outside the accepted range"""

    pass
