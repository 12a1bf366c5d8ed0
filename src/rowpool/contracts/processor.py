"""Processor protocol defining the caller-supplied capability contract.

The pipeline provides orchestration only. Everything record-specific comes
from a processor object supplied by the caller:

- validate: cheap structural check, once per record, before queueing
- identify: (description, id) pair for progress and error logging
- process: the transformation, invoked concurrently from every worker
- set_credential: called once before the run, only if a credential was given

Thread Safety:
    A single processor instance is shared by every worker thread. The
    pipeline does NOT lock around process(); implementations must be safe
    under concurrent invocation or synchronize internally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from rowpool.contracts.records import Identifier, Input, Output


@runtime_checkable
class ProcessorProtocol(Protocol):
    """Protocol for caller-supplied processors.

    Example:
        class UserProcessor:
            def validate(self, record: Sequence[str]) -> None:
                if len(record) != 2:
                    raise ValueError("expected 2 fields")

            def identify(self, item: Input) -> Identifier:
                return Identifier("user id", int(item.line[0]))

            def process(self, item: Input) -> Output:
                return Output.ok(item.line)

            def set_credential(self, token: str) -> None:
                self.token = token
    """

    def validate(self, record: Sequence[str]) -> None:
        """Raise to reject a record. A rejection aborts the whole run."""
        ...

    def identify(self, item: Input) -> Identifier:
        """Return the (description, id) pair for a record. Must be pure."""
        ...

    def process(self, item: Input) -> Output:
        """Transform one record. Called concurrently; must be thread-safe."""
        ...

    def set_credential(self, token: str) -> None:
        """Accept an access credential before the run starts."""
        ...


class BaseProcessor(ABC):
    """Convenience base for processors.

    Accepts every record and stores the credential on ``self.credential``.
    Subclasses implement identify() and process().
    """

    def __init__(self) -> None:
        self.credential: str | None = None

    def validate(self, record: Sequence[str]) -> None:  # noqa: B027 - optional hook
        """Accept every record by default."""

    @abstractmethod
    def identify(self, item: Input) -> Identifier:
        """Return the (description, id) pair for a record."""

    @abstractmethod
    def process(self, item: Input) -> Output:
        """Transform one record."""

    def set_credential(self, token: str) -> None:
        self.credential = token
