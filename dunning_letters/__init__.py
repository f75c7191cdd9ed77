"""
Dunning letter generation for rent ledgers.

Turns a tenant's open ledger positions into a paginated reminder or
dunning notice PDF: address, subject, letter text, ledger table, bank
details, closing and footer, with a fallback for every section.
"""

from .assembler import DocumentAssembler, GenerationContext, LetterDocument
from .assets import AssetCache
from .batch import BatchResult, BatchRunner
from .fees import resolve_fee
from .levels import LEVEL_CONFIGS, DunningLevel, coerce_level
from .models import BankData, FinancialRecord, PostAddress, Tenant, UserProfile

__all__ = [
    "AssetCache",
    "BankData",
    "BatchResult",
    "BatchRunner",
    "DocumentAssembler",
    "DunningLevel",
    "FinancialRecord",
    "GenerationContext",
    "LEVEL_CONFIGS",
    "LetterDocument",
    "PostAddress",
    "Tenant",
    "UserProfile",
    "coerce_level",
    "resolve_fee",
]
