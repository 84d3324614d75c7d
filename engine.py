# engine.py

import json
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union


class InvalidInputError(ValueError):
    """Raised when simulation inputs are rejected before a run starts."""


class PlacementPolicy:
    FIRST = "first"
    BEST = "best"
    WORST = "worst"
    ALL = (FIRST, BEST, WORST)


class Mode:
    FIXED = "fixed"
    VARIABLE = "variable"
    ALL = (FIXED, VARIABLE)


@dataclass(frozen=True)
class Partition:
    start: int
    size: int
    free: bool = True

    def __repr__(self):
        state = "F" if self.free else "A"
        return f"[{state}|{self.start}|{self.size}]"


@dataclass(frozen=True)
class FixedSnapshot:
    memory: Tuple[int, ...]
    allocation: Tuple[Optional[int], ...]
    current: int


@dataclass(frozen=True)
class VariableSnapshot:
    partitions: Tuple[Partition, ...]
    allocation: Tuple[Optional[int], ...]
    current: int


Snapshot = Union[FixedSnapshot, VariableSnapshot]


# -----------------------------
# Input validation
# -----------------------------
def parse_sizes(text: str, label: str = "sizes") -> List[int]:
    """
    Parse a comma separated list of sizes in KB.

    Blank entries are skipped. Anything that is not a non-negative integer
    is rejected, as is a list with no entries at all.

    Raises:
        InvalidInputError: If an entry is malformed or the list is empty.
    """
    sizes = []
    for token in text.split(","):
        token = token.strip()
        if token == "":
            continue
        try:
            value = int(token)
        except ValueError:
            raise InvalidInputError(f"Invalid {label} entry: {token!r}") from None
        if value < 0:
            raise InvalidInputError(f"Negative {label} entry: {value}")
        sizes.append(value)

    if not sizes:
        raise InvalidInputError(f"Enter at least one {label} value")
    return sizes


def _check_sizes(values: Sequence[int], label: str) -> None:
    if len(values) == 0:
        raise InvalidInputError(f"{label} must not be empty")
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidInputError(f"{label} must contain integers, got {v!r}")
        if v < 0:
            raise InvalidInputError(f"{label} must not contain negative sizes, got {v}")


def _check_policy(policy: str) -> None:
    if policy not in PlacementPolicy.ALL:
        raise InvalidInputError(f"Unknown placement policy: {policy!r}")


# -----------------------------
# Placement policy
# -----------------------------
def select_candidate(candidates: Iterable[Tuple[int, int]], request: int,
                     policy: str) -> Optional[int]:
    """
    Pick a region for a request of ``request`` KB.

    ``candidates`` yields ``(index, size)`` pairs in positional order. The
    scan is left to right with strict comparisons, so the lowest index wins
    when best-fit or worst-fit see equal sizes.

    Returns:
        Optional[int]: The chosen index, or None if nothing fits.
    """
    _check_policy(policy)
    chosen = None
    chosen_size = None

    for index, size in candidates:
        if size < request:
            continue
        if policy == PlacementPolicy.FIRST:
            return index
        if chosen is None:
            chosen, chosen_size = index, size
        elif policy == PlacementPolicy.BEST and size < chosen_size:
            chosen, chosen_size = index, size
        elif policy == PlacementPolicy.WORST and size > chosen_size:
            chosen, chosen_size = index, size

    return chosen


# -----------------------------
# Simulators
# -----------------------------
def simulate_fixed(blocks: Sequence[int], processes: Sequence[int],
                   policy: str) -> List[FixedSnapshot]:
    """
    Allocate each process into one of the fixed blocks, in arrival order.

    A chosen block keeps whatever is left after the request and may take
    later processes too. One snapshot is produced per process.
    """
    _check_sizes(blocks, "blocks")
    _check_sizes(processes, "processes")
    _check_policy(policy)

    memory = list(blocks)
    allocation: List[Optional[int]] = [None] * len(processes)
    steps = []

    for i, request in enumerate(processes):
        chosen = select_candidate(enumerate(memory), request, policy)
        if chosen is not None:
            allocation[i] = chosen
            memory[chosen] -= request

        steps.append(FixedSnapshot(tuple(memory), tuple(allocation), i))

    return steps


def simulate_variable(total_capacity: int, processes: Sequence[int],
                      policy: str) -> List[VariableSnapshot]:
    """
    Carve each process out of a free partition, splitting off the remainder.

    Memory starts as a single free partition of ``total_capacity`` KB. The
    remainder of a split is inserted directly after the partition it came
    from, so partitions stay contiguous and in address order.
    """
    if isinstance(total_capacity, bool) or not isinstance(total_capacity, int) \
            or total_capacity < 0:
        raise InvalidInputError(f"Invalid total capacity: {total_capacity!r}")
    _check_sizes(processes, "processes")
    _check_policy(policy)

    partitions = [Partition(0, total_capacity, True)]
    allocation: List[Optional[int]] = [None] * len(processes)
    steps = []

    for i, request in enumerate(processes):
        free_parts = ((idx, part.size) for idx, part in enumerate(partitions) if part.free)
        chosen = select_candidate(free_parts, request, policy)

        if chosen is not None:
            part = partitions[chosen]
            allocation[i] = chosen
            remaining = part.size - request
            partitions[chosen] = replace(part, size=request, free=False)
            if remaining > 0:
                partitions.insert(chosen + 1, Partition(part.start + request, remaining, True))

        steps.append(VariableSnapshot(tuple(partitions), tuple(allocation), i))

    return steps


def run_simulation(mode: str, blocks: Sequence[int], processes: Sequence[int],
                   policy: str) -> List[Snapshot]:
    """Dispatch to the simulator for ``mode``; variable mode pools all blocks."""
    if mode == Mode.FIXED:
        return simulate_fixed(blocks, processes, policy)
    elif mode == Mode.VARIABLE:
        _check_sizes(blocks, "blocks")
        return simulate_variable(sum(blocks), processes, policy)
    raise InvalidInputError(f"Unknown partitioning mode: {mode!r}")


# -----------------------------
# Statistics
# -----------------------------
def compute_stats(snapshot: Snapshot, blocks: Sequence[int],
                  process_count: int) -> Dict[str, float]:
    """
    Summarise memory usage at one step.

    Returns:
        Dict[str, float]: used, free and total KB, allocated and total
        process counts, and utilization as a percentage.
    """
    total = sum(blocks)
    if isinstance(snapshot, FixedSnapshot):
        used = total - sum(snapshot.memory)
        free = total - used
    else:
        free = sum(p.size for p in snapshot.partitions if p.free)
        used = total - free

    utilization = (used / total * 100) if total > 0 else 0.0

    return {
        "used": used,
        "free": free,
        "total": total,
        "allocated": sum(1 for a in snapshot.allocation if a is not None),
        "processes": process_count,
        "utilization": round(utilization, 2),
    }


# -----------------------------
# Event log
# -----------------------------
def allocation_labels(snapshot: Snapshot, processes: Sequence[int]) -> List[str]:
    lines = []
    for i in range(snapshot.current + 1):
        target = snapshot.allocation[i]
        if target is None:
            where = "Not Allocated"
        elif isinstance(snapshot, FixedSnapshot):
            where = f"B{target + 1}"
        else:
            where = f"Part {target + 1}"
        lines.append(f"P{i + 1} ({processes[i]} KB) → {where}")
    return lines


def step_header(index: int, total: int, mode: str, policy: str) -> Tuple[str, str]:
    return (f"Step {index + 1} / {total}",
            f"Mode: {mode.upper()} | Algorithm: {policy.upper()}")


# -----------------------------
# Playback
# -----------------------------
class Playback:
    """
    Read-only cursor over a precomputed trace.

    Attributes:
        steps (List[Snapshot]): The trace being replayed
        index (int): Position of the cursor
        speed (float): Playback speed multiplier
    """

    BASE_INTERVAL = 1.2  # seconds between auto-advances at speed 1

    def __init__(self, steps: Sequence[Snapshot], speed: float = 1.0):
        if len(steps) == 0:
            raise InvalidInputError("Nothing to play back: the trace is empty")
        self.steps = list(steps)
        self.index = 0
        self.speed = 1.0
        self.set_speed(speed)

    def set_speed(self, speed: float):
        if speed <= 0:
            raise InvalidInputError(f"Playback speed must be positive, got {speed}")
        self.speed = speed

    @property
    def interval(self) -> float:
        return self.BASE_INTERVAL / self.speed

    @property
    def current(self) -> Snapshot:
        return self.steps[self.index]

    @property
    def at_end(self) -> bool:
        return self.index >= len(self.steps) - 1

    def next(self) -> Snapshot:
        self.index = min(self.index + 1, len(self.steps) - 1)
        return self.current

    def prev(self) -> Snapshot:
        self.index = max(self.index - 1, 0)
        return self.current


# -----------------------------
# Trace export
# -----------------------------
def snapshot_to_dict(snapshot: Snapshot) -> dict:
    if isinstance(snapshot, FixedSnapshot):
        record = {"memory": list(snapshot.memory)}
    else:
        record = {
            "partitions": [
                {"start": p.start, "size": p.size, "free": p.free}
                for p in snapshot.partitions
            ]
        }
    record["allocation"] = list(snapshot.allocation)
    record["current"] = snapshot.current
    return record


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _int_list(record: dict, key: str, allow_none: bool = False) -> Tuple[Optional[int], ...]:
    values = record[key]
    if not isinstance(values, list):
        raise InvalidInputError(f"Trace field {key!r} must be a list, got {values!r}")
    for v in values:
        if not (_is_int(v) or (allow_none and v is None)):
            raise InvalidInputError(f"Trace field {key!r} holds a non-integer entry: {v!r}")
    return tuple(values)


def _partition_from_dict(p: dict) -> Partition:
    if not (_is_int(p["start"]) and _is_int(p["size"]) and isinstance(p["free"], bool)):
        raise InvalidInputError(f"Malformed partition: {p!r}")
    return Partition(p["start"], p["size"], p["free"])


def snapshot_from_dict(record: dict) -> Snapshot:
    """
    Rebuild a snapshot from its exported form.

    Raises:
        InvalidInputError: If a field is missing or has the wrong type.
    """
    try:
        allocation = _int_list(record, "allocation", allow_none=True)
        current = record["current"]
        if not _is_int(current):
            raise InvalidInputError(f"Trace field 'current' must be an integer, got {current!r}")
        if "memory" in record:
            return FixedSnapshot(_int_list(record, "memory"), allocation, current)
        if not isinstance(record["partitions"], list):
            raise InvalidInputError("Trace field 'partitions' must be a list")
        partitions = tuple(_partition_from_dict(p) for p in record["partitions"])
    except (KeyError, TypeError) as e:
        raise InvalidInputError(f"Malformed trace record: {record!r}") from e
    return VariableSnapshot(partitions, allocation, current)


def trace_to_json(steps: Sequence[Snapshot]) -> str:
    return json.dumps([snapshot_to_dict(s) for s in steps], indent=2)


def trace_from_json(text: str) -> List[Snapshot]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Trace is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise InvalidInputError("A trace must be a JSON list of snapshots")
    return [snapshot_from_dict(record) for record in data]
