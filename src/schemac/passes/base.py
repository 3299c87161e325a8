"""
Base Pass System

Passes operate on a loaded Application and share one CompileContext per
compilation. Analysis results live on the context, never on the pass.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type
import logging

from ..model.application import Application
from ..shared.errors import ErrorReporter

logger = logging.getLogger("schemac.passes.base")


class CompileContext:
    """
    Compilation context - single source of truth for per-compilation state.

    - Diagnostics (reporter) and the source files they point into
    - Analysis results, keyed by the pass class that produced them
    """

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = source_files if source_files is not None else {}
        self.reporter: ErrorReporter = ErrorReporter(self.source_files)
        self._analysis_results: Dict[Type['BasePass'], Any] = {}

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def has_analysis(self, pass_class: Type['BasePass']) -> bool:
        return pass_class in self._analysis_results

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        """Store analysis results"""
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    Base class for all passes.

    - Explicit dependencies via `requires`
    - Results stored in CompileContext (not in pass)
    - Passes mutate the application in place and return it
    """
    requires: List[Type['BasePass']] = []  # Dependencies (empty by default)

    @abstractmethod
    def run(self, application: Application, ctx: CompileContext) -> Application:
        raise NotImplementedError


class PassManager:
    """
    Pass manager with dependency resolution.

    - Automatic dependency resolution (topological sort, stable in registration order)
    - Single CompileContext shared across all passes
    """

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], set] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        """Register a pass"""
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, application: Application, ctx: CompileContext) -> Application:
        """Run all passes in dependency order."""
        for pass_class in self._topological_sort():
            logger.debug(f"Running {pass_class.__name__}")
            application = pass_class().run(application, ctx)
        return application

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by dependencies"""
        missing = {
            dep.__name__
            for p in self.passes
            for dep in self._dependency_graph[p]
            if dep not in self._dependency_graph
        }
        if missing:
            raise RuntimeError(f"Passes required but not registered: {', '.join(sorted(missing))}")

        in_degree = {p: len(self._dependency_graph[p]) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
