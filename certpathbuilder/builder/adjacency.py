# certpathbuilder/builder/adjacency.py

"""
Bookkeeping for the path search.

  - Vertex: one candidate certificate considered at one point of the
    search, the row of candidates that may follow it, and the failure
    captured for it (if any).
  - BuildStep: immutable record of one decision (POSSIBLE, FOLLOW, BACK,
    FAIL, SUCCEED) about a vertex.
  - AdjacencyList: arena of vertices addressed by integer handles, the
    rows of candidates produced by the search, and the ordered trail of
    build steps. Nothing is ever removed, so abandoned branches stay
    available for diagnostics.

Rows are numbered in creation order. Row 0 holds the target candidates;
every later row holds the candidate issuers of exactly one vertex, whose
`index` points back at the row.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from certpathbuilder.exceptions import CertPathError


class StepResult(Enum):
    POSSIBLE = 1
    BACK = 2
    FOLLOW = 3
    FAIL = 4
    SUCCEED = 5

    def describe(self) -> str:
        if self is StepResult.POSSIBLE:
            return "Certificate to be tried."
        if self is StepResult.BACK:
            return "Certificate backed out since path does not satisfy build requirements."
        if self is StepResult.FAIL:
            return "Certificate backed out since path does not satisfy conditions."
        return "Certificate satisfies conditions."


class Vertex:
    def __init__(self, handle: int, row: int, certificate):
        self.handle = handle
        self.row = row
        self.certificate = certificate
        self._index = -1
        self._error: Optional[CertPathError] = None

    @property
    def index(self) -> int:
        """
        Row of the adjacency list holding the certificates that could
        follow this one, or -1 if none was computed.
        """
        return self._index

    def set_index(self, ndx: int) -> None:
        if self._index != -1:
            raise RuntimeError(f"Vertex {self.handle} already points at row {self._index}")
        self._index = ndx

    @property
    def error(self) -> Optional[CertPathError]:
        return self._error

    def set_error(self, error: Optional[CertPathError]) -> None:
        self._error = error

    def error_to_string(self) -> str:
        return f"Exception:  {self._error if self._error is not None else 'none'}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "row": self.row,
            "index": self._index,
            "subject": self.certificate.subject_string,
            "issuer": self.certificate.issuer_string,
            "serial": f"{self.certificate.serial_number:x}",
            "error": self._error.to_dict() if self._error is not None else None,
        }

    def __str__(self) -> str:
        return "\n".join([
            self.certificate.describe(),
            self.error_to_string(),
            f"Index:      {self._index}",
        ])

    def __repr__(self) -> str:
        return f"<Vertex {self.handle} row={self.row} {self.certificate.subject_string!r}>"


@dataclass(frozen=True)
class BuildStep:
    handle: int
    result: StepResult
    certificate: Any
    error: Optional[CertPathError] = None

    @property
    def subject_name(self) -> str:
        return self.certificate.subject_string

    @property
    def issuer_name(self) -> str:
        return self.certificate.issuer_string

    def describe(self) -> str:
        """
        Short form: the meaning of the result code, plus the captured
        failure for BACK and FAIL steps.
        """
        out = self.result.describe()
        if self.result in (StepResult.BACK, StepResult.FAIL):
            out += f"\nException:  {self.error if self.error is not None else 'none'}"
        return out

    def verbose(self) -> str:
        """
        Long form: the meaning of the result code, then the issuer, subject,
        serial number and captured failure of the vertex.
        """
        return "\n".join([
            self.result.describe(),
            f"Issuer:     {self.issuer_name}",
            f"Subject:    {self.subject_name}",
            f"SerialNum:  {self.certificate.serial_number:x}",
            f"Exception:  {self.error if self.error is not None else 'none'}",
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vertex": self.handle,
            "result": self.result.name,
            "subject": self.subject_name,
            "issuer": self.issuer_name,
            "error": self.error.to_dict() if self.error is not None else None,
        }


class AdjacencyList:
    def __init__(self):
        self._vertices: List[Vertex] = []
        self._rows: List[List[int]] = []
        self._row_parents: List[Optional[int]] = []
        self._steps: List[BuildStep] = []

    def add_row(self, certificates, parent: Optional[int] = None) -> int:
        """
        Append a row of candidate vertices, one per certificate.

        :param certificates: Candidates in the order they will be tried
        :param parent: Handle of the vertex these certificates may follow,
            or None for the row of target candidates
        :return: Index of the new row
        """
        if parent is None and self._rows:
            raise ValueError("Only the first row may be created without a parent")
        if parent is not None and parent >= len(self._vertices):
            raise IndexError(f"No vertex with handle {parent}")

        row = len(self._rows)
        handles = []
        for cert in certificates:
            vertex = Vertex(len(self._vertices), row, cert)
            self._vertices.append(vertex)
            handles.append(vertex.handle)
        self._rows.append(handles)
        self._row_parents.append(parent)
        if parent is not None:
            self._vertices[parent].set_index(row)
        return row

    def get_row(self, i: int) -> List[Vertex]:
        return [self._vertices[h] for h in self._rows[i]]

    def vertex(self, handle: int) -> Vertex:
        return self._vertices[handle]

    def row_parent(self, i: int) -> Optional[Vertex]:
        parent = self._row_parents[i]
        return self._vertices[parent] if parent is not None else None

    @property
    def vertices(self) -> List[Vertex]:
        return list(self._vertices)

    @property
    def steps(self) -> List[BuildStep]:
        return list(self._steps)

    def record(self, handle: int, result: StepResult) -> BuildStep:
        vertex = self._vertices[handle]
        step = BuildStep(handle=handle, result=result, certificate=vertex.certificate,
                         error=vertex.error)
        self._steps.append(step)
        return step

    def path_to_root(self, handle: int) -> List[Vertex]:
        """
        Follow row back-pointers from `handle` to the row of target
        candidates. Returns the vertices from `handle` to row 0.
        """
        path = [self._vertices[handle]]
        parent = self._row_parents[path[-1].row]
        while parent is not None:
            path.append(self._vertices[parent])
            parent = self._row_parents[path[-1].row]
        return path

    def chain_from(self, handle: int) -> List:
        """
        Reconstruct the certificate path ending at `handle`: certificates
        ordered from `handle` (closest to the anchor) down to the target.
        """
        return [v.certificate for v in self.path_to_root(handle)]

    def failures(self) -> List[Vertex]:
        return [v for v in self._vertices if v.error is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [
                {"row": i, "parent": self._row_parents[i], "vertices": self._rows[i]}
                for i in range(len(self._rows))
            ],
            "vertices": [v.to_dict() for v in self._vertices],
            "steps": [s.to_dict() for s in self._steps],
        }

    def __len__(self) -> int:
        return len(self._rows)

    def __str__(self) -> str:
        out = [f"[\n  AdjacencyList: {len(self._rows)} row(s)"]
        for i, handles in enumerate(self._rows):
            out.append(f"  LinkedList[{i}]:")
            for h in handles:
                body = str(self._vertices[h]).replace("\n", "\n    ")
                out.append(f"    [{h}]\n    {body}")
        out.append("]")
        return "\n".join(out)
