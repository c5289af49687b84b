"""
Pool Repository for the tournament engine
"""

from typing import List
from models import Pool
from bracketflow.repositories.base import BaseRepository


class PoolRepository(BaseRepository[Pool]):
    """
    Repository for pool queries
    """

    def __init__(self):
        super().__init__(Pool)

    def get_pools_by_division(self, division_id: str) -> List[Pool]:
        """
        Get the pools of a division in creation order

        Args:
            division_id: Division ID

        Returns:
            List of pools
        """
        return self.find_by({'division_id': division_id}, order_by=['created_at', 'name'])

    def get_pools_by_ids(self, pool_ids: List[str]) -> List[Pool]:
        """Get pools by id, keeping the order of pool_ids and skipping unknown ids"""
        pools = []
        for pool_id in pool_ids:
            pool = self.get_by_id(pool_id)
            if pool is not None:
                pools.append(pool)
            else:
                self.logger.warning(f"Pool {pool_id} referenced but not found")
        return pools
