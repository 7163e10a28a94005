"""
Brokers: transactional orchestration over stores.

Provides:
- StandardBroker: CRUD in a joined or new transaction (standard.py)
- LogicalDeleteBroker: deletes deactivate rows (logical_delete.py)
- ReferenceBroker: translation-aware reference data (reference.py)
"""

from broker.brokers.standard import StandardBroker, as_criteria
from broker.brokers.logical_delete import LogicalDeleteBroker
from broker.brokers.reference import ReferenceBroker, ResourceLoader, ResourceWriter

__all__ = [
    "StandardBroker",
    "LogicalDeleteBroker",
    "ReferenceBroker",
    "ResourceLoader",
    "ResourceWriter",
    "as_criteria",
]
