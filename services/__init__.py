# Business logic services
from .cdsapi import OpenApiClient, CloudRequest
from .provider import ECIProvider, Lookup, LookupOutcome
from .signer import Signer
from .translator import WorkloadTranslator

__all__ = [
    'OpenApiClient', 'CloudRequest',
    'ECIProvider', 'Lookup', 'LookupOutcome',
    'Signer',
    'WorkloadTranslator',
]
