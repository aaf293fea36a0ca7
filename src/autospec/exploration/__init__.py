"""
Exploration Module

Survey planning, the per-spec action agent and the action executor.
"""

from .agent import ActionAgent, AgentState
from .executor import ActionExecutor
from .planner import SpecPlanner, load_specs

__all__ = ['ActionAgent', 'AgentState', 'ActionExecutor', 'SpecPlanner', 'load_specs']
