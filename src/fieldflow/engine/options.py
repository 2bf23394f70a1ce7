# src/fieldflow/engine/options.py
"""Per-call options shared by the resolver, replay runtime and transforms."""

from dataclasses import dataclass
from datetime import date

from fieldflow.contracts.enums import UnmappedPolicy
from fieldflow.core.config import FieldflowSettings


@dataclass(frozen=True, slots=True)
class ResolutionOptions:
    """Options for one evaluation pass.

    Attributes:
        unmapped_policy: What an unmatched conversion lookup produces
        today: Reference date for the *_today conditional operators;
            None means the current local date
    """

    unmapped_policy: UnmappedPolicy = UnmappedPolicy.SENTINEL
    today: date | None = None

    def current_date(self) -> date:
        return self.today if self.today is not None else date.today()

    @classmethod
    def from_settings(cls, settings: FieldflowSettings, *, today: date | None = None) -> "ResolutionOptions":
        return cls(unmapped_policy=settings.engine.unmapped_policy, today=today)


DEFAULT_OPTIONS = ResolutionOptions()
