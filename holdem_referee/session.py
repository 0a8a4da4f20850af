"""
Game session coordinator: loads configs, plays hands, and persists artefacts.

A session owns one table's seats across many hands. Between hands it resets
busted seats to the starting stack, rotates the button to the next occupied
seat and, when enabled, lets every seat update its notes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import pathlib
import random
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .agent_registry import make_decision_maker
from .cards import Deck
from .config_loader import load_config
from .engine import HoldemEngine, TableConfig
from .errors import ConfigError
from .gateway import DecisionGateway
from .logging_utils import NDJSONLogger
from .metrics import aggregate_seat_metrics, seat_records
from .observations import synthesize_notes
from .schemas import EMPTY_SEAT, HandResult, Seat

logger = logging.getLogger(__name__)


@dataclass
class SeatConfig:
    name: str
    model: str
    seat: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "SeatConfig":
        if isinstance(raw, str):
            return cls(name=raw, model=raw)
        if not isinstance(raw, Mapping):
            raise ConfigError(f"seat entry must be a string or a mapping, got {raw!r}")
        model = raw.get("model") or raw.get("binding")
        if not isinstance(model, str) or not model.strip():
            raise ConfigError(f"seat entry {raw!r} needs a model")
        seat = raw.get("seat")
        if seat is not None and not isinstance(seat, int):
            raise ConfigError(f"seat number must be an integer, got {seat!r}")
        return cls(name=str(raw.get("name") or model), model=model.strip(), seat=seat)


@dataclass
class SessionConfig:
    seats: List[SeatConfig]
    hands: int = 10
    seat_count: Optional[int] = None
    starting_stack: int = 2000
    small_blind: int = 5
    big_blind: int = 10
    min_raise: int = 5
    seed: Optional[int] = None
    synthesize_notes: bool = True
    time_per_decision_ms: int = 60000
    table_id: str = "table-1"
    dry_run: bool = False

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "SessionConfig":
        return cls.from_dict(load_config(path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionConfig":
        if "seats" not in data:
            raise ConfigError("config requires a 'seats' list")
        blinds = data.get("blinds") or {}
        config = cls(
            seats=[SeatConfig.from_raw(raw) for raw in data["seats"] or []],
            hands=data.get("hands", 10),
            seat_count=data.get("seat_count"),
            starting_stack=data.get("starting_stack", 2000),
            small_blind=blinds.get("sb", data.get("small_blind", 5)),
            big_blind=blinds.get("bb", data.get("big_blind", 10)),
            min_raise=data.get("min_raise", 5),
            seed=data.get("seed"),
            synthesize_notes=data.get("synthesize_notes", True),
            time_per_decision_ms=data.get("time_per_decision_ms", 60000),
            table_id=str(data.get("table_id", "table-1")),
            dry_run=data.get("dry_run", False),
        )
        config.validate()
        return config

    @property
    def table_size(self) -> int:
        if self.seat_count is not None:
            return self.seat_count
        numbered = [entry.seat for entry in self.seats if entry.seat is not None]
        return max([len(self.seats)] + [number + 1 for number in numbered])

    def validate(self) -> None:
        if not isinstance(self.hands, int) or self.hands < 1:
            raise ConfigError("hands must be a positive integer")
        occupied = [entry for entry in self.seats if entry.model != EMPTY_SEAT]
        if len(occupied) < 2:
            raise ConfigError("at least two occupied seats are required")
        numbers = [entry.seat for entry in self.seats if entry.seat is not None]
        if len(set(numbers)) != len(numbers):
            raise ConfigError(f"duplicate seat numbers in {numbers}")
        if any(number < 0 or number >= self.table_size for number in numbers):
            raise ConfigError(f"seat numbers must lie in 0..{self.table_size - 1}")
        if len(self.seats) > self.table_size:
            raise ConfigError(f"{len(self.seats)} seats configured for a table of {self.table_size}")
        self.table_config().validate()

    def table_config(self) -> TableConfig:
        return TableConfig(
            seat_count=self.table_size,
            small_blind=self.small_blind,
            big_blind=self.big_blind,
            min_raise=self.min_raise,
            starting_stack=self.starting_stack,
            time_per_decision_ms=self.time_per_decision_ms,
            table_id=self.table_id,
        )

    def build_seats(self) -> List[Seat]:
        taken = {entry.seat for entry in self.seats if entry.seat is not None}
        free = (number for number in range(self.table_size) if number not in taken)
        seats = []
        for entry in self.seats:
            position = entry.seat if entry.seat is not None else next(free)
            stack = 0 if entry.model == EMPTY_SEAT else self.starting_stack
            seats.append(
                Seat(
                    seat_id=f"seat{position}",
                    name=entry.name,
                    binding=entry.model,
                    stack=stack,
                    position=position,
                )
            )
        return sorted(seats, key=lambda seat: seat.position)


@dataclass
class SessionResult:
    table_id: str
    final_stacks: Dict[str, int]
    hands: List[HandResult]
    records: List[Dict[str, Any]]
    metrics: Dict[str, Any]
    events_path: pathlib.Path
    per_hand_path: pathlib.Path
    summary_path: pathlib.Path
    rebuys: Dict[str, int] = field(default_factory=dict)


def next_button(seats: Sequence[Seat], current: int) -> int:
    occupied = sorted(seat.position for seat in seats if not seat.is_empty)
    for position in occupied:
        if position > current:
            return position
    return occupied[0]


class GameSession:
    """
    High-level driver for one table.
    """

    def __init__(
        self,
        config: SessionConfig,
        output_dir: str | pathlib.Path,
        decision_makers: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.config = config
        self.output_dir = pathlib.Path(output_dir)
        self.seats = config.build_seats()
        if decision_makers is None:
            decision_makers = {
                seat.seat_id: make_decision_maker(seat.binding, name=seat.name, dry_run=config.dry_run)
                for seat in self.seats
                if not seat.is_empty
            }
        self.gateway = DecisionGateway(decision_makers, config.time_per_decision_ms)
        self.table_config = config.table_config()
        self._rng = random.Random()

    async def run(self, hands: Optional[int] = None) -> SessionResult:
        hands = hands or self.config.hands
        self.output_dir.mkdir(parents=True, exist_ok=True)
        events_path = self.output_dir / "events.ndjson"
        per_hand_path = self.output_dir / "per_hand.ndjson"
        summary_path = self.output_dir / "summary.json"
        names = {seat.seat_id: seat.name for seat in self.seats}

        results: List[HandResult] = []
        records: List[Dict[str, Any]] = []
        rebuys: Dict[str, int] = {}
        button = next(seat.position for seat in self.seats if not seat.is_empty)
        logger.info("table %s: starting %d hands", self.config.table_id, hands)

        with NDJSONLogger(events_path) as events, per_hand_path.open("w", encoding="utf-8") as per_hand:
            engine = HoldemEngine(self.table_config, self.gateway, events)
            for hand_index in range(hands):
                for seat in self.seats:
                    if not seat.is_empty and seat.stack == 0:
                        seat.stack = self.config.starting_stack
                        rebuys[seat.seat_id] = rebuys.get(seat.seat_id, 0) + 1
                        logger.info("seat %s busted, reset to %d", seat.seat_id, seat.stack)
                        events.log("rebuy", {"seat": seat.seat_id, "stack": seat.stack, "hand_index": hand_index})

                if self.config.seed is not None:
                    deck = Deck.from_seed(self.config.seed, hand_index)
                else:
                    deck = Deck.shuffled(self._rng)
                result = await engine.play_hand(
                    self.seats,
                    button,
                    deck,
                    hand_id=f"{self.config.table_id}-h{hand_index:04d}",
                )
                results.append(result)
                for record in seat_records(result, table_id=self.config.table_id, hand_index=hand_index, names=names):
                    row = record.to_dict()
                    records.append(row)
                    per_hand.write(json.dumps(row, sort_keys=True) + "\n")
                per_hand.flush()

                if self.config.synthesize_notes:
                    await synthesize_notes(
                        result,
                        self.seats,
                        self.gateway.decision_maker,
                        self.config.time_per_decision_ms,
                    )
                button = next_button(self.seats, button)

        final_stacks = {seat.seat_id: seat.stack for seat in self.seats if not seat.is_empty}
        metrics = aggregate_seat_metrics(records, self.config.big_blind)
        summary = {
            "table_id": self.config.table_id,
            "hands": len(results),
            "final_stacks": final_stacks,
            "rebuys": rebuys,
            "seats": {seat.seat_id: {"name": seat.name, "model": seat.binding} for seat in self.seats},
            "metrics": metrics,
        }
        summary_path.write_text(json.dumps(summary, indent=2, sort_keys=True), encoding="utf-8")
        logger.info("table %s finished: %s", self.config.table_id, final_stacks)
        return SessionResult(
            table_id=self.config.table_id,
            final_stacks=final_stacks,
            hands=results,
            records=records,
            metrics=metrics,
            events_path=events_path,
            per_hand_path=per_hand_path,
            summary_path=summary_path,
            rebuys=rebuys,
        )


def replicate_tables(config: SessionConfig, count: int) -> List[SessionConfig]:
    """``count`` independent copies of one table, each with its own id and seed."""
    if count == 1:
        return [config]
    return [
        replace(
            config,
            table_id=f"{config.table_id}-{index + 1}",
            seed=None if config.seed is None else config.seed + index,
        )
        for index in range(count)
    ]


async def run_tables(
    configs: Sequence[SessionConfig],
    output_dir: str | pathlib.Path,
) -> List[SessionResult]:
    """Run one session per config concurrently; tables share no state."""
    output_dir = pathlib.Path(output_dir)
    sessions = [GameSession(config, output_dir / config.table_id) for config in configs]
    return list(await asyncio.gather(*(session.run() for session in sessions)))
