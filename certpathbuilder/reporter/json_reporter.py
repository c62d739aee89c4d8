# certpathbuilder/reporter/json_reporter.py

import json
from typing import Any, Dict

from certpathbuilder.builder.path_builder import BuildResult


class JSONReporter:
    """
    Reporter that outputs a build result as a JSON object: the chain, the
    anchor, the failure (if any), store errors and, optionally, the full
    search trace.
    """

    @staticmethod
    def to_dict(result: BuildResult, trace: bool = False) -> Dict[str, Any]:
        data = result.to_dict()
        if not trace:
            data.pop("adjacency_list", None)
        return data

    @staticmethod
    def format(result: BuildResult, trace: bool = False) -> str:
        """
        Return JSON string for `result`. The adjacency list and build steps
        are included only when `trace` is set.
        """
        return json.dumps(JSONReporter.to_dict(result, trace), indent=2)
