"""
Lot services — modular organization of lot operations.

Re-exports all public classes so they can be imported from one place:
    from lotman.services import LotQueries, LotStore, AllocationPlanner, ConsumptionExecutor
"""

from lotman.services.consumption import ConsumptionExecutor
from lotman.services.lots import LotStore
from lotman.services.planning import AllocationLine, AllocationPlan, AllocationPlanner
from lotman.services.queries import LotQueries

__all__ = [
    'LotQueries',
    'LotStore',
    'AllocationLine',
    'AllocationPlan',
    'AllocationPlanner',
    'ConsumptionExecutor',
]
