from .actions import ActionRegistry as ActionRegistry, build_default_registry as build_default_registry
from .context import IterationContext as IterationContext, RunContext as RunContext
from .presets import PRESETS as PRESETS, get_preset as get_preset, preset_names as preset_names
from .run_id import new_run_id as new_run_id, topic_name as topic_name
from .runner import ScenarioRunner as ScenarioRunner
from .scenario import (
    CountCheck as CountCheck,
    PhaseSpec as PhaseSpec,
    Scenario as Scenario,
    TopicSettings as TopicSettings,
)
from .suite import (
    SuiteEntry as SuiteEntry,
    SuiteResult as SuiteResult,
    load_suite as load_suite,
    run_suite as run_suite,
)
