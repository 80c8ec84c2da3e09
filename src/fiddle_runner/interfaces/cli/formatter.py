"""
Result formatting utilities for CLI output
"""

import json
import sys
from typing import Any, Dict

import yaml

from fiddle_runner.domain.value_objects import Result


class ResultFormatter:
    """
    Format run results for different output types
    """

    def __init__(
        self,
        format: str = "pretty",
        verbose: bool = False,
        use_colors: bool = True
    ):
        self.format = format
        self.verbose = verbose
        self.use_colors = use_colors and self._supports_color()

        if self.use_colors:
            self.colors = {
                'reset': '\033[0m',
                'red': '\033[91m',
                'green': '\033[92m',
                'yellow': '\033[93m',
                'blue': '\033[94m',
                'cyan': '\033[96m',
                'dim': '\033[2m',
            }
        else:
            self.colors = {k: '' for k in ['reset', 'red', 'green', 'yellow', 'blue', 'cyan', 'dim']}

    def _supports_color(self) -> bool:
        """Check if terminal supports colors"""
        return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

    def _colorize(self, text: str, color: str) -> str:
        return f"{self.colors[color]}{text}{self.colors['reset']}"

    def format_result(self, result: Result) -> str:
        if self.format == "json":
            return json.dumps(self._to_data(result), indent=2, ensure_ascii=False, default=str)
        elif self.format == "yaml":
            return yaml.safe_dump(
                self._to_data(result),
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        return self._format_pretty(result)

    def _to_data(self, result: Result) -> Dict[str, Any]:
        data = result.to_dict()
        if not self.verbose:
            data.pop("context", None)
        return data

    def _format_pretty(self, result: Result) -> str:
        output = []

        if result.errors:
            output.append(self._colorize(f"Run finished with {len(result.errors)} error(s)", "red"))
        else:
            output.append(self._colorize("Run succeeded", "green"))
        output.append("")

        output.append(self._colorize("DURATION:", "blue") + f" {result.duration or '-'}")
        output.append("")

        output.append(self._colorize("OUTPUT:", "blue"))
        output.append(self._colorize("-" * 40, "dim"))
        if result.output is None:
            output.append("(no output)")
        elif result.output == "":
            output.append("(empty)")
        else:
            output.append(result.output.rstrip())
        output.append("")

        if result.errors:
            output.append(self._colorize("ERRORS:", "yellow"))
            output.append(self._colorize("-" * 40, "dim"))
            for error in result.errors:
                line = f"  [{error.kind.value}] {error.message}"
                if error.detail:
                    line += f" ({error.detail})"
                output.append(line)
            output.append("")

        if self.verbose and result.context is not None:
            output.append(self._colorize("DEBUG:", "cyan"))
            output.append(self._colorize("-" * 40, "dim"))
            context = result.context
            output.append(f"  Environment:  {context.environment_id}")
            for name, compiled in sorted(context.compiled.items()):
                output.append(f"  Compiled {name}:")
                output.append(compiled.rstrip())
            if context.context:
                output.append("  Context:")
                output.append(json.dumps(context.context, indent=2, ensure_ascii=False, default=str))
            output.append("")

        return "\n".join(output)
