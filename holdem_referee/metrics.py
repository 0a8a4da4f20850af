"""
Per-seat aggregation of hand results.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Sequence

from .gateway import ILLEGAL_REPAIRS, TIMEOUT
from .schemas import HandResult

VOLUNTARY = {"call", "bet", "raise"}


@dataclass
class SeatHandRecord:
    table_id: str
    hand_id: str
    hand_index: int
    seat_id: str
    name: str
    delta: int
    won: int
    showdown: bool
    timeouts: int
    illegal_actions: int
    vpip: bool
    pfr: bool
    bets: int
    raises: int
    calls: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def seat_records(
    result: HandResult,
    *,
    table_id: str,
    hand_index: int,
    names: Mapping[str, str],
) -> List[SeatHandRecord]:
    won: Dict[str, int] = defaultdict(int)
    for payout in result.payouts:
        won[payout.seat_id] += payout.amount

    repairs: Dict[str, List[str]] = defaultdict(list)
    for event in result.events:
        if event["type"] == "repair":
            repairs[event["payload"]["seat"]].append(event["payload"]["kind"])

    records = []
    for seat_id in result.starting_stacks:
        actions = [record for record in result.actions if record.seat_id == seat_id]
        preflop = [record.kind for record in actions if record.street == "preflop"]
        kinds = [record.kind for record in actions]
        records.append(
            SeatHandRecord(
                table_id=table_id,
                hand_id=result.hand_id,
                hand_index=hand_index,
                seat_id=seat_id,
                name=names.get(seat_id, seat_id),
                delta=result.deltas[seat_id],
                won=won[seat_id],
                showdown=result.showdown and "fold" not in kinds,
                timeouts=repairs[seat_id].count(TIMEOUT),
                illegal_actions=sum(1 for kind in repairs[seat_id] if kind in ILLEGAL_REPAIRS),
                vpip=any(kind in VOLUNTARY for kind in preflop),
                pfr="raise" in preflop,
                bets=kinds.count("bet"),
                raises=kinds.count("raise"),
                calls=kinds.count("call"),
            )
        )
    return records


def aggregate_seat_metrics(records: Sequence[Mapping[str, Any]], big_blind: int) -> Dict[str, Any]:
    grouped: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
    for record in records:
        grouped[record["seat_id"]].append(record)

    results: Dict[str, Any] = {}
    for seat_id, rows in grouped.items():
        hands = len(rows)
        total_delta = sum(int(row["delta"]) for row in rows)
        total_bb = total_delta / big_blind if big_blind else 0.0
        aggressive = sum(int(row["bets"]) + int(row["raises"]) for row in rows)
        calls = sum(int(row["calls"]) for row in rows)
        results[seat_id] = {
            "name": rows[0]["name"],
            "hands": hands,
            "total_delta_chips": total_delta,
            "bb_per_100": (total_bb / hands) * 100 if hands else 0.0,
            "hands_won": sum(1 for row in rows if int(row["won"]) > 0),
            "showdowns": sum(1 for row in rows if row["showdown"]),
            "timeouts": sum(int(row["timeouts"]) for row in rows),
            "illegal_actions": sum(int(row["illegal_actions"]) for row in rows),
            "vpip": _rate(sum(1 for row in rows if row["vpip"]), hands),
            "pfr": _rate(sum(1 for row in rows if row["pfr"]), hands),
            "af": aggressive / calls if calls else float(aggressive),
        }
    return results


def _rate(count: int, total: int) -> float:
    return count / total if total else 0.0
