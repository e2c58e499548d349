from .jobs import Job, BookingCostDetail
from .documents import DocumentSequence, ExternalReceipt
from .registry import Customer, ShippingLine

__all__ = [
    'Job', 'BookingCostDetail',
    'DocumentSequence', 'ExternalReceipt',
    'Customer', 'ShippingLine',
]
