from enum import Enum


class TaskKind(str, Enum):
    """Task categories. Used for routing and logging, never for scheduling."""
    EXTRACTION = "extraction"
    COMPLIANCE = "compliance"
    DELIVERABLES = "deliverables"

    @property
    def function_name(self) -> str:
        """Name of the remote function that accepts this kind of work."""
        return _FUNCTION_NAMES[self]

    @classmethod
    def from_function_name(cls, name: str) -> "TaskKind":
        for kind, function_name in _FUNCTION_NAMES.items():
            if function_name == name:
                return kind
        raise ValueError(f"Unknown function {name!r}")


_FUNCTION_NAMES = {
    TaskKind.EXTRACTION: "extract-data",
    TaskKind.COMPLIANCE: "analyze-compliance",
    TaskKind.DELIVERABLES: "generate-deliverables",
}
