"""Template rendering engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from jinja2 import DictLoader, Environment, StrictUndefined
from pydantic import BaseModel, Field

from ..core.diagnostics import Diagnostic, DiagnosticCollector
from ..core.errors import Keepass2FileError, OutputWriteError, TemplateRenderError
from ..core.models import TemplateBinding
from ..keepass.database import CredentialTree
from ..keepass.resolver import EntryResolver
from .io import atomic_write_text

logger = logging.getLogger(__name__)


def stringify(value: Any) -> str:
    """Double-quote a value, escaping ``"`` and ``$`` for shell-style env files."""
    text = str(value)
    return '"' + text.replace('"', '\\"').replace("$", "\\$") + '"'


def build_environment(
    resolver: EntryResolver, sources: Mapping[str, str]
) -> Environment:
    """Create the Jinja2 environment templates render in.

    Args:
        resolver: Installed as the ``keepass`` global
        sources: Template sources by name; mutated as templates are registered

    Returns:
        Configured Jinja2 environment
    """
    env = Environment(
        loader=DictLoader(sources),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.globals["keepass"] = resolver
    env.filters["stringify"] = stringify
    return env


class TemplateResult(BaseModel):
    """Outcome of one binding in a batch."""

    binding: TemplateBinding
    output_path: Path | None = Field(default=None, description="Written file")
    error: str | None = Field(default=None, description="Why the binding was skipped")
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.error is not None


class BatchReport(BaseModel):
    results: list[TemplateResult] = Field(default_factory=list)

    @property
    def rendered(self) -> list[Path]:
        return [r.output_path for r in self.results if r.output_path is not None]

    @property
    def skipped(self) -> list[TemplateResult]:
        return [r for r in self.results if r.skipped]


class Renderer:
    """Renders template bindings against one open KeePass database.

    The database is shared read-only by every template rendered through this
    instance; the collector receives the lookup diagnostics.
    """

    def __init__(
        self,
        tree: CredentialTree,
        collector: DiagnosticCollector | None = None,
        file_mode: int = 0o644,
    ) -> None:
        self.collector = collector if collector is not None else DiagnosticCollector()
        self._file_mode = file_mode
        self._sources: dict[str, str] = {}
        self._env = build_environment(EntryResolver(tree, self.collector), self._sources)

    def register_template(self, name: str, template_path: Path) -> None:
        """Load ``template_path`` and make it renderable as ``name``."""
        if not template_path.is_file():
            raise TemplateRenderError(f"Template not found: {template_path}")
        try:
            self._sources[name] = template_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateRenderError(
                f"Template cannot be read: {template_path}: {e}"
            ) from e

    def render_one(
        self, binding: TemplateBinding, variables: Mapping[str, str]
    ) -> Path:
        """Render a single binding and write its output file.

        Args:
            binding: Template to render and where to write it
            variables: Merged template variables

        Returns:
            Output file path
        """
        logger.debug(f"Rendering template: {binding.template_path}")

        name = binding.engine_name
        self.register_template(name, Path(binding.template_path))
        try:
            template = self._env.get_template(name)
            rendered_text = template.render(dict(variables))
        except Exception as e:
            raise TemplateRenderError(
                f"Failed to render template {binding.template_path}: {e}"
            ) from e

        output_path = Path(binding.output_path)
        try:
            atomic_write_text(output_path, rendered_text, mode=self._file_mode)
        except OSError as e:
            raise OutputWriteError(
                f"Failed to write output file {output_path}: {e}"
            ) from e
        logger.info(f"Rendered {binding.template_path} → {output_path}")

        return output_path

    def flush_diagnostics(self, binding: TemplateBinding) -> list[Diagnostic]:
        """Report and clear the diagnostics collected for ``binding``."""
        diagnostics = self.collector.drain()
        if diagnostics:
            logger.error(f"There were some errors processing {binding.template_path}:")
            for diagnostic in diagnostics:
                logger.error(diagnostic.report_line())
        self.collector.clear()
        return diagnostics

    def render_all(
        self, bindings: Sequence[TemplateBinding], variables: Mapping[str, str]
    ) -> BatchReport:
        """Render every binding, skipping the ones that fail.

        Args:
            bindings: Bindings in the order they should be rendered
            variables: Merged template variables

        Returns:
            Per-binding outcomes
        """
        logger.info(f"Rendering {len(bindings)} template(s)")

        report = BatchReport()
        for binding in bindings:
            self.collector.clear()
            result = TemplateResult(binding=binding)
            try:
                result.output_path = self.render_one(binding, variables)
            except Keepass2FileError as e:
                result.error = str(e)
                logger.warning(f"Skipping template {binding.label} because of: {e}")
            result.diagnostics = self.flush_diagnostics(binding)
            report.results.append(result)

        logger.info(
            f"Rendered {len(report.rendered)} of {len(bindings)} file(s), "
            f"skipped {len(report.skipped)}"
        )
        return report
