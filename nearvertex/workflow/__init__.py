from nearvertex.core.sequentials import Sequentials, StepConfig
from .steps import step_grids, step_target, step_search, step_extract

def create_and_configure_workflow(ctx):
    workflow = Sequentials(ctx)

    workflow.register(StepConfig(name='grids', func=step_grids))
    workflow.register(StepConfig(name='target', func=step_target, depends_on=['grids']))
    workflow.register(StepConfig(name='search', func=step_search, depends_on=['target']))
    workflow.register(StepConfig(name='extract', func=step_extract, depends_on=['search']))

    return workflow
