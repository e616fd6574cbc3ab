from dataclasses import dataclass

from ._itypes import FailureKind


@dataclass(frozen=True, slots=True, kw_only=True)
class Completed:
    """
    body: serialized response, the echoed record or a list of records
    content_label: content-type header value, set only for record lists
    """

    action: str
    body: str
    content_label: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Unsupported:
    "a terminal no-op, nothing is persisted or published"

    action: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Failed:
    kind: FailureKind
    detail: str
    action: str | None = None


type DispatchOutcome = Completed | Unsupported | Failed
