from nearvertex.core.sequentials import Sequentials, StepConfig
from nearvertex.workflow import create_and_configure_workflow
import pytest

def test_steps_receive_dependency_outputs():
    calls = []

    def first(ctx):
        calls.append('first')
        return ctx['base'] + 1

    def second(ctx, first):
        calls.append('second')
        return first * 10

    workflow = Sequentials({'base': 1})
    workflow.register(StepConfig(name='first', func=first))
    workflow.register(StepConfig(name='second', func=second, depends_on=['first']))
    outputs = workflow.run()

    assert calls == ['first', 'second']
    assert outputs == {'first': 2, 'second': 20}
    assert set(workflow.timing_stats) == {'first', 'second'}

def test_duplicate_step_is_rejected():
    workflow = Sequentials()
    workflow.register(StepConfig(name='a', func=lambda ctx: None))
    with pytest.raises(ValueError):
        workflow.register(StepConfig(name='a', func=lambda ctx: None))

def test_missing_dependency_is_reported():
    workflow = Sequentials()
    workflow.register(StepConfig(name='b', func=lambda ctx, a: a, depends_on=['a']))
    with pytest.raises(RuntimeError, match="needs 'a'"):
        workflow.run()

def test_failing_step_stops_the_run():
    def broken(ctx):
        raise ValueError('bad grid')

    ran = []
    workflow = Sequentials()
    workflow.register(StepConfig(name='broken', func=broken))
    workflow.register(StepConfig(name='after', func=lambda ctx, broken: ran.append(1), depends_on=['broken']))
    with pytest.raises(ValueError):
        workflow.run()
    assert ran == []

def test_cell_workflow_step_order():
    workflow = create_and_configure_workflow({'cell_id': 'x'})
    assert [step.name for step in workflow.steps] == ['grids', 'target', 'search', 'extract']
    assert workflow.steps[-1].depends_on == ['search']
