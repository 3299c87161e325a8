"""
Compiler Driver

Loads an application description and runs the passes over it.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..frontend.application_loader import ApplicationLoader
from ..frontend.tensor_type_parser import TensorTypeParser
from ..model.application import Application
from ..model.serialization import serialize_type_settings
from ..passes.base import CompileContext, PassManager
from ..passes.builtin_rank_profiles import BuiltinRankProfilesPass
from ..passes.rank_profile_type_settings import RankProfileTypeSettingsPass
from ..utils.config import DUMP_FILE_EXTENSION, DUMP_TYPES_DIR, DUMP_TYPES_ENV_VAR
from ..utils.io_utils import write_text_file

logger = logging.getLogger("schemac.compiler.driver")


class CompilationResult:
    """Compilation result"""
    def __init__(
        self,
        application: Optional[Application] = None,
        ctx: Optional[CompileContext] = None,
        success: bool = False
    ):
        self.application = application
        self.ctx = ctx
        self.success = success

    def has_errors(self) -> bool:
        """True if compilation reported errors."""
        if self.ctx and self.ctx.reporter:
            return self.ctx.reporter.has_errors()
        return not self.success

    def get_errors(self) -> list:
        if self.ctx and self.ctx.reporter.has_errors():
            return [self.ctx.reporter.format_all_errors(color=False)]
        return []


class CompilerDriver:
    """
    Compiler driver.

    - Loading (source -> Application), stopping on errors
    - Passes, in dependency order, on one CompileContext
    - Optional type dumps (SCHEMAC_DUMP_TYPES=1)

    Stateless between compilations: fresh context and pass instances per call.
    """

    def __init__(self):
        self.pass_manager = PassManager()
        self.tensor_parser = TensorTypeParser()
        self._register_passes()

    def _register_passes(self) -> None:
        """
        Register all passes.

        1. BuiltinRankProfilesPass (default, unranked)
        2. RankProfileTypeSettingsPass (needs every rank profile registered)
        """
        self.pass_manager.register_pass(BuiltinRankProfilesPass)
        self.pass_manager.register_pass(RankProfileTypeSettingsPass)

    def compile(self, source: str, source_file: str = "application.yaml") -> CompilationResult:
        """Load an application description and compile it."""
        ctx = CompileContext({source_file: source})
        loader = ApplicationLoader(ctx.reporter, self.tensor_parser)
        application = loader.load(source, source_file)

        if application is None or ctx.reporter.has_errors():
            logger.debug(f"Loading {source_file} failed with {len(ctx.reporter.errors)} errors")
            return CompilationResult(application=application, ctx=ctx, success=False)

        return self.compile_application(application, ctx)

    def compile_application(
        self,
        application: Application,
        ctx: Optional[CompileContext] = None,
    ) -> CompilationResult:
        """Run the passes on an already-built application."""
        if ctx is None:
            ctx = CompileContext()

        application = self.pass_manager.run_all(application, ctx)

        if os.environ.get(DUMP_TYPES_ENV_VAR):
            out_path = Path(DUMP_TYPES_DIR) / f"{application.schema.name}{DUMP_FILE_EXTENSION}"
            write_text_file(out_path, serialize_type_settings(application))
            logger.info(f"Wrote type settings to {out_path}")

        return CompilationResult(
            application=application,
            ctx=ctx,
            success=not ctx.reporter.has_errors(),
        )
