from __future__ import annotations
import math
import re
from dataclasses import dataclass, fields, asdict, replace
from typing import Any, Dict, Mapping, Tuple

COURSE_COUNT = 3


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class Course:
    price_per_participant: float
    participants: float
    per_week: float  # sessions per week
    trainer_costs: float  # per session


@dataclass(frozen=True)
class ScenarioInputs:
    # Fixed income
    profitraining: float  # per month

    # Tickets
    ticket_price: float
    tickets_per_week: float
    gastronomy_profit_per_ticket: float  # already net

    # Shows / events
    shows_per_week: float
    gema_fee_per_show: float
    kvr_fee_per_show: float
    artist_fee_per_show: float

    # Courses (per participant)
    course1_price_per_participant: float
    course1_participants: float
    course1_per_week: float
    course1_trainer_costs: float

    course2_price_per_participant: float
    course2_participants: float
    course2_per_week: float
    course2_trainer_costs: float

    course3_price_per_participant: float
    course3_participants: float
    course3_per_week: float
    course3_trainer_costs: float

    # Workshops (profit per participant)
    workshop_profit_per_participant: float
    workshop_participants: float
    workshops_per_month: float

    # Rentals
    rentals_per_week: float
    rental_price: float

    # Monthly costs
    rent: float
    salaries: float
    marketing: float
    technology: float
    heating_costs: float
    other_costs: float

    weekly_reserves: float  # per week

    def course(self, n: int) -> Course:
        """Return course group ``n`` (1-based)."""
        if n == 1:
            return Course(self.course1_price_per_participant, self.course1_participants,
                          self.course1_per_week, self.course1_trainer_costs)
        if n == 2:
            return Course(self.course2_price_per_participant, self.course2_participants,
                          self.course2_per_week, self.course2_trainer_costs)
        if n == 3:
            return Course(self.course3_price_per_participant, self.course3_participants,
                          self.course3_per_week, self.course3_trainer_costs)
        raise ValueError(f"course index must be 1..{COURSE_COUNT}, got {n}")

    def courses(self) -> Tuple[Course, ...]:
        return tuple(self.course(n) for n in range(1, COURSE_COUNT + 1))

    def monthly_costs(self) -> float:
        return (self.rent + self.salaries + self.marketing + self.technology
                + self.heating_costs + self.other_costs)

    def fee_per_show(self) -> float:
        return self.gema_fee_per_show + self.kvr_fee_per_show + self.artist_fee_per_show

    def to_dict(self) -> Dict[str, float]:
        return {to_camel(k): v for k, v in asdict(self).items()}

    def merged(self, updates: Mapping[str, Any] | "ScenarioInputs" | None) -> "ScenarioInputs":
        """Return a copy with ``updates`` (camelCase or snake_case keys) applied."""
        if updates is None:
            return self
        if isinstance(updates, ScenarioInputs):
            return updates
        known = field_names()
        changes: Dict[str, float] = {}
        for key, value in updates.items():
            name = key if key in known else to_snake(key)
            if name not in known:
                continue
            if isinstance(value, bool):
                raise ValueError(f"{to_camel(name)} must be a number")
            try:
                changes[name] = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{to_camel(name)} must be a number") from None
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None, base: "ScenarioInputs | None" = None) -> "ScenarioInputs":
        """Merge a partial mapping over ``base`` (defaults when omitted); unknown keys are ignored."""
        return (base or DEFAULT_INPUTS).merged(data or {})


def field_names() -> Tuple[str, ...]:
    return tuple(f.name for f in fields(ScenarioInputs))


def wire_names() -> Tuple[str, ...]:
    return tuple(to_camel(n) for n in field_names())


DEFAULT_INPUTS = ScenarioInputs(
    profitraining=700.0,

    ticket_price=15.0,
    tickets_per_week=60.0,
    gastronomy_profit_per_ticket=3.0,
    shows_per_week=1.0,
    gema_fee_per_show=50.0,
    kvr_fee_per_show=50.0,
    artist_fee_per_show=600.0,

    course1_price_per_participant=20.0,
    course1_participants=12.0,
    course1_per_week=2.0,
    course1_trainer_costs=50.0,

    course2_price_per_participant=18.0,
    course2_participants=8.0,
    course2_per_week=3.0,
    course2_trainer_costs=40.0,

    course3_price_per_participant=25.0,
    course3_participants=6.0,
    course3_per_week=1.0,
    course3_trainer_costs=60.0,

    workshop_profit_per_participant=20.0,
    workshop_participants=15.0,
    workshops_per_month=2.0,

    rentals_per_week=3.0,
    rental_price=250.0,

    rent=0.0,
    salaries=12257.05,  # fixed monthly payroll
    marketing=300.0,
    technology=200.0,
    heating_costs=3500.0,
    other_costs=300.0,

    weekly_reserves=0.0,
)

EMPTY_INPUTS = ScenarioInputs(
    profitraining=0.0,
    ticket_price=0.0,
    tickets_per_week=0.0,
    gastronomy_profit_per_ticket=0.0,
    shows_per_week=0.0,
    gema_fee_per_show=0.0,
    kvr_fee_per_show=0.0,
    artist_fee_per_show=0.0,
    course1_price_per_participant=0.0,
    course1_participants=0.0,
    course1_per_week=0.0,
    course1_trainer_costs=0.0,
    course2_price_per_participant=0.0,
    course2_participants=0.0,
    course2_per_week=0.0,
    course2_trainer_costs=0.0,
    course3_price_per_participant=0.0,
    course3_participants=0.0,
    course3_per_week=0.0,
    course3_trainer_costs=0.0,
    workshop_profit_per_participant=0.0,
    workshop_participants=0.0,
    workshops_per_month=0.0,
    rentals_per_week=0.0,
    rental_price=0.0,
    rent=0.0,
    salaries=0.0,
    marketing=0.0,
    technology=0.0,
    heating_costs=0.0,
    other_costs=0.0,
    weekly_reserves=0.0,
)


def validate_inputs(inputs: ScenarioInputs) -> None:
    for name, value in asdict(inputs).items():
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise ValueError(f"{to_camel(name)} must be a number")
        if not math.isfinite(value):
            raise ValueError(f"{to_camel(name)} must be a finite number")
