# certpathbuilder/reporter/text_reporter.py

"""
Human-readable rendering of a build result, coloured with colorama.

Colours are dropped when CERTPATHBUILDER_NO_COLOR is set or when the
reporter is created with `color=False`.
"""

import os
from typing import List

from colorama import Fore, Style

from certpathbuilder.builder.adjacency import StepResult
from certpathbuilder.builder.path_builder import BuildResult
from certpathbuilder.utils.settings import ENV_DISABLE_COLORS

_STEP_COLORS = {
    StepResult.POSSIBLE: Fore.CYAN,
    StepResult.FOLLOW: Fore.BLUE,
    StepResult.BACK: Fore.YELLOW,
    StepResult.FAIL: Fore.RED,
    StepResult.SUCCEED: Fore.GREEN,
}


class TextReporter:
    def __init__(self, color: bool = True):
        self.color = color and not os.getenv(ENV_DISABLE_COLORS)

    def _paint(self, text: str, color: str) -> str:
        if not self.color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def format(self, result: BuildResult, trace: bool = False) -> str:
        lines: List[str] = []
        if result.succeeded:
            lines.append(self._paint("Certification path found", Fore.GREEN))
            lines.append(f"  Trust anchor: {result.anchor.subject_string}")
            for depth, cert in enumerate(result.chain):
                lines.append(f"  [{depth}] {cert.subject_string}")
                lines.append(f"      issuer: {cert.issuer_string}  serial: {cert.serial_number:x}")
        else:
            lines.append(self._paint("No certification path found", Fore.RED))
            lines.append(f"  {result.failure}")
            for vertex in result.adjacency_list.failures():
                lines.append(f"  - {vertex.certificate.subject_string}: "
                             f"[{vertex.error.reason.value}] {vertex.error}")

        for err in result.store_errors:
            lines.append(self._paint(f"Store error ({err.store_name}): {err}", Fore.YELLOW))

        if trace:
            lines.append("")
            lines.append("Search trace:")
            for step in result.adjacency_list.steps:
                label = self._paint(f"{step.result.name:<8}", _STEP_COLORS[step.result])
                line = f"  {label} #{step.handle} {step.subject_name}"
                if step.result in (StepResult.BACK, StepResult.FAIL) and step.error is not None:
                    line += f"  ({step.error})"
                lines.append(line)

        return "\n".join(lines)
