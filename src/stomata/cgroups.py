"""Process/cgroup catalog: builds ProcessRecords from raw process handles."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from stomata.models import CgroupInfo, ProcessRecord, RawProcess

logger = logging.getLogger(__name__)

PROC_ROOT = Path("/proc")
UNIFIED_CONTROLLER = "unified"
SYSTEMD_CONTROLLER = "systemd"
ROOT_PATH = "/"

CgroupReader = Callable[[int], list[CgroupInfo]]


def parse_cgroup_line(line: str) -> CgroupInfo | None:
    """
    Parse one ``hierarchy_id:controllers:path`` line.

    Returns None for lines that do not split into exactly three fields or
    whose hierarchy id is not a non-negative integer.
    """
    parts = line.strip().split(":")
    if len(parts) != 3:
        return None

    hierarchy, controllers, path = parts
    try:
        hierarchy_id = int(hierarchy)
    except ValueError:
        return None
    if hierarchy_id < 0:
        return None

    if controllers:
        names = tuple(controllers.split(","))
    else:
        names = (UNIFIED_CONTROLLER,)
    return CgroupInfo(hierarchy_id=hierarchy_id, controllers=names, path=path)


def parse_cgroups(text: str) -> list[CgroupInfo]:
    """Parse a cgroup descriptor, dropping malformed lines."""
    groups: list[CgroupInfo] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        info = parse_cgroup_line(line)
        if info is None:
            logger.debug("Dropping malformed cgroup line %r", line)
            continue
        groups.append(info)
    return groups


def read_cgroups(pid: int, proc_root: Path = PROC_ROOT) -> list[CgroupInfo]:
    """
    Read the cgroup membership of a process.

    Falls back to a single root record when the descriptor cannot be read
    (process exited, permission denied, no /proc on this platform).
    """
    try:
        text = (proc_root / str(pid) / "cgroup").read_text(encoding="utf-8")
    except OSError:
        return [CgroupInfo()]
    return parse_cgroups(text)


def controller_map(groups: Iterable[CgroupInfo]) -> dict[str, str]:
    """Map each controller to its cgroup path; later groups win."""
    mapping: dict[str, str] = {}
    for group in groups:
        for controller in group.controllers:
            mapping[controller] = group.path
    return mapping


def primary_path(groups: Iterable[CgroupInfo]) -> str:
    """Pick the unified hierarchy path, else the systemd one, else the root."""
    systemd_path: str | None = None
    for group in groups:
        if group.hierarchy_id == 0:
            return group.path
        if systemd_path is None and SYSTEMD_CONTROLLER in group.controllers:
            systemd_path = group.path
    return systemd_path if systemd_path is not None else ROOT_PATH


def build_process_record(raw: RawProcess, reader: CgroupReader = read_cgroups) -> ProcessRecord:
    """Build a ProcessRecord for one raw process handle."""
    groups = reader(raw.pid)
    return ProcessRecord(
        pid=raw.pid,
        name=raw.name,
        cpu_percent=raw.cpu_percent,
        memory_rss=raw.memory_rss,
        status=raw.status,
        cgroup_path=primary_path(groups),
        cgroup_controllers=controller_map(groups),
    )


@dataclass(slots=True, frozen=True)
class CgroupSummary:
    """Aggregate resource use of the processes sharing a primary cgroup path."""

    path: str
    process_count: int
    total_cpu: float
    total_memory: int


class CgroupCatalog:
    """Builds the per-snapshot process list and its cgroup grouping."""

    def __init__(self, reader: CgroupReader = read_cgroups) -> None:
        self._reader = reader

    def build(self, processes: Iterable[RawProcess]) -> list[ProcessRecord]:
        """Build one record per raw process."""
        return [build_process_record(raw, self._reader) for raw in processes]

    @staticmethod
    def group_by_cgroup(records: Iterable[ProcessRecord]) -> dict[str, list[ProcessRecord]]:
        """Group records by primary cgroup path, paths in sorted order."""
        groups: dict[str, list[ProcessRecord]] = {}
        for record in records:
            groups.setdefault(record.cgroup_path, []).append(record)
        return {path: groups[path] for path in sorted(groups)}

    @classmethod
    def summarize(cls, records: Iterable[ProcessRecord]) -> list[CgroupSummary]:
        """Summaries per cgroup path, heaviest CPU users first."""
        summaries = [
            CgroupSummary(
                path=path,
                process_count=len(members),
                total_cpu=sum(member.cpu_percent for member in members),
                total_memory=sum(member.memory_rss for member in members),
            )
            for path, members in cls.group_by_cgroup(records).items()
        ]
        return sorted(summaries, key=lambda s: (-s.total_cpu, s.path))
