"""
PipelineRunner - Executes stages in dependency order.

This module provides the PipelineRunner class that orchestrates stage execution.
Stages run one at a time; the first failure stops the run and propagates.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Dict, List

from .context import PipelineContext
from .stage import Stage

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Executes stages sequentially in dependency order.

    The runner analyzes stage dependencies and determines the execution
    order. It handles:
    - Dependency graph analysis (hard and soft dependencies)
    - Topological sorting, keeping the given order for independent stages
    - Error propagation: the first failing stage aborts the run
    - A per-stage timing summary
    """

    def __init__(self):
        """Initialize the pipeline runner."""
        self._execution_times: Dict[str, float] = {}

    def run(self, stages: List[Stage], context: PipelineContext) -> PipelineContext:
        """Execute all stages in dependency order.

        Parameters
        ----------
        stages : List[Stage]
            List of stages to execute
        context : PipelineContext
            Initial pipeline context

        Returns
        -------
        PipelineContext
            Final context after all stages complete

        Raises
        ------
        ValueError
            If duplicate names or circular dependencies are detected
        Exception
            If any stage fails
        """
        start_time = time.time()
        logger.info(f"Starting pipeline execution with {len(stages)} stages")

        stage_map = {stage.name: stage for stage in stages}
        if len(stage_map) != len(stages):
            raise ValueError("Duplicate stage names detected")

        execution_order = self._create_execution_order(stages)
        logger.debug(f"Execution order: {[s.name for s in execution_order]}")

        for stage in execution_order:
            context = self._execute_stage(stage, context)

        total_time = time.time() - start_time
        logger.info(f"Pipeline execution completed in {total_time:.1f}s")

        self._log_execution_summary()

        return context

    def _create_execution_order(self, stages: List[Stage]) -> List[Stage]:
        """Topologically sort stages, breaking ties by their position in ``stages``.

        Raises
        ------
        ValueError
            If circular dependencies are detected
        """
        position = {stage.name: i for i, stage in enumerate(stages)}
        graph = {stage.name: stage for stage in stages}

        # Effective dependencies: hard ones plus soft ones present in the pipeline
        dependencies = {}
        for stage in stages:
            deps = set(stage.dependencies)
            deps.update(dep for dep in stage.soft_dependencies if dep in graph)
            dependencies[stage.name] = deps

        dependents = defaultdict(set)
        in_degree = {}
        for stage_name, deps in dependencies.items():
            valid_deps = [dep for dep in deps if dep in graph]
            in_degree[stage_name] = len(valid_deps)
            for dep in valid_deps:
                dependents[dep].add(stage_name)

        queue = deque(
            sorted((name for name, degree in in_degree.items() if degree == 0), key=position.get)
        )
        order: List[Stage] = []

        while queue:
            stage_name = queue.popleft()
            order.append(graph[stage_name])

            ready = []
            for dependent in dependents[stage_name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    ready.append(dependent)
            queue = deque(sorted([*queue, *ready], key=position.get))

        if len(order) != len(stages):
            unprocessed = set(graph) - {s.name for s in order}
            for stage_name in unprocessed:
                logger.debug(f"  {stage_name}: {dependencies[stage_name]}")
            raise ValueError(f"Circular dependency detected involving stages: {unprocessed}")

        return order

    def _execute_stage(self, stage: Stage, context: PipelineContext) -> PipelineContext:
        """Execute a single stage and track timing."""
        start_time = time.time()
        result = stage(context)
        self._execution_times[stage.name] = time.time() - start_time
        return result

    def _log_execution_summary(self) -> None:
        """Log summary of stage execution times."""
        if not self._execution_times:
            return

        logger.info("=" * 60)
        logger.info("Stage Execution Summary")
        logger.info("=" * 60)

        total_time = sum(self._execution_times.values())
        for stage_name, elapsed in self._execution_times.items():
            percentage = (elapsed / total_time) * 100 if total_time > 0 else 0
            logger.info(f"{stage_name:30s} {elapsed:6.1f}s ({percentage:4.1f}%)")

        logger.info("-" * 60)
        logger.info(f"{'Total stage time:':30s} {total_time:6.1f}s")
        logger.info("=" * 60)

    def dry_run(self, stages: List[Stage]) -> List[str]:
        """Return the stage names in the order ``run`` would execute them."""
        return [stage.name for stage in self._create_execution_order(stages)]
