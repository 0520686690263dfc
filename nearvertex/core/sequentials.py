from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List
import logging
import time

logger = logging.getLogger(__name__)

@dataclass
class StepConfig:
    name: str
    func: Callable[..., Any]
    depends_on: List[str] = field(default_factory=list)

class Sequentials:
    '''
    Runs registered steps in registration order. Each step receives the
    shared context plus the outputs of the steps it depends on as keyword
    arguments.
    '''
    def __init__(self, context=None):
        self.steps = []
        self.context = context or {}
        self.outputs = {}
        self.timing_stats = {}

    def register(self, step):
        if any(s.name == step.name for s in self.steps):
            raise ValueError(f"Step '{step.name}' already registered.")
        self.steps.append(step)

    def run(self) -> Dict[str, Any]:
        total_start = time.perf_counter()
        label = self.context.get('cell_id', '?')

        for step in self.steps:
            for dep in step.depends_on:
                if dep not in self.outputs:
                    raise RuntimeError(
                        f"Step '{step.name}' needs '{dep}', "
                        f"but '{dep}' has not been executed."
                    )

            inputs = {dep: self.outputs[dep] for dep in step.depends_on}

            step_start = time.perf_counter()
            logger.debug(f"Cell {label}: running step '{step.name}' (depends on: {step.depends_on})")

            self.outputs[step.name] = step.func(self.context, **inputs)

            step_time = time.perf_counter() - step_start
            self.timing_stats[step.name] = step_time
            logger.debug(f"Cell {label}: step '{step.name}' completed in {step_time:.3f} s")

        total_time = time.perf_counter() - total_start
        breakdown = ', '.join(
            f'{name} {t:.3f}s ({(t / total_time) * 100 if total_time else 0.0:.1f}%)'
            for name, t in sorted(self.timing_stats.items(), key=lambda x: x[1], reverse=True)
        )
        logger.info(f'Cell {label} pipeline took {total_time:.3f} s: {breakdown}')
        return self.outputs
