"""
Propagates change impact through a dependency graph.

Raw ranks come from a PageRank-style diffusion; the change's type and the
contracts it touches then scale every vertex's normalized rank.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from impact_flow.core.dependency_graph import DependencyGraph
from impact_flow.core.models import ChangeSpecification, ChangeType

logger = logging.getLogger(__name__)

DEFAULT_DAMPING_FACTOR = 0.85
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_TOLERANCE = 1e-4
DEFAULT_CHANGE_TYPE_MULTIPLIERS: Dict[str, float] = {
    ChangeType.CONTRACT.value: 1.5,
    ChangeType.IMPLEMENTATION.value: 1.2,
    ChangeType.RESOURCE.value: 1.3,
}
DEFAULT_CONTRACT_MULTIPLIER = 1.4
MAX_IMPACT_SCORE = 1.0


@dataclass
class ImpactPropagator:
    damping_factor: float = DEFAULT_DAMPING_FACTOR
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    tolerance: float = DEFAULT_TOLERANCE
    change_type_multipliers: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CHANGE_TYPE_MULTIPLIERS)
    )
    contract_multiplier: float = DEFAULT_CONTRACT_MULTIPLIER

    def propagate(self, graph: DependencyGraph, change: ChangeSpecification) -> Dict[str, float]:
        """Compute capped impact scores for every vertex of ``graph``."""
        ranks = self.compute_ranks(graph)
        return self.adjust_scores(ranks, change)

    def compute_ranks(self, graph: DependencyGraph) -> Dict[str, float]:
        """
        Run the diffusion and return ranks normalized to sum to 1.

        Rank held by vertices without outgoing edges reaches no target and is
        dropped each iteration, not redistributed; normalization restores the sum.
        """
        n = len(graph)
        if n == 0:
            return {}

        ranks: List[float] = [1.0 / n] * n
        iterations = 0
        for iterations in range(1, self.max_iterations + 1):
            incoming = [0.0] * n
            for source, targets in enumerate(graph.out_edges):
                out_degree = len(targets)
                if out_degree == 0:
                    continue
                share = ranks[source] / out_degree
                for target, weight in targets:
                    incoming[target] += share * weight

            new_ranks = [(1 - self.damping_factor) + self.damping_factor * value for value in incoming]
            total_diff = sum(abs(new - old) for new, old in zip(new_ranks, ranks))
            ranks = new_ranks
            logger.debug(f"Iteration {iterations}: residual {total_diff:.6g}")

            if total_diff < self.tolerance:
                break

        logger.info(f"Impact diffusion finished after {iterations} iterations over {n} components")

        total = sum(ranks)
        return {name: ranks[idx] / total for idx, name in enumerate(graph.vertices)}

    def adjust_scores(self, ranks: Mapping[str, float], change: ChangeSpecification) -> Dict[str, float]:
        type_multiplier = self.type_multiplier(change.change_type)
        affected = set(change.affected_contracts)

        scores: Dict[str, float] = {}
        for component, rank in ranks.items():
            score = rank * type_multiplier
            if component in affected:
                score *= self.contract_multiplier
            scores[component] = min(score, MAX_IMPACT_SCORE)
        return scores

    def type_multiplier(self, change_type: Optional[str]) -> float:
        # Unrecognized change types are not an error; they scale by 1.0.
        return self.change_type_multipliers.get((change_type or "").lower(), 1.0)
